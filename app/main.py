from fastapi import FastAPI

from app.logs import configure_logging
from app.routes.health import router as health_router
from app.routes.members import router as members_router
from app.routes.projects import router as projects_router
from app.routes.roles import router as roles_router
from app.routes.tasks import router as tasks_router
from app.routes.users import router as users_router

def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="agileflow-api", version="0.1.0")
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(roles_router)
    app.include_router(projects_router)
    app.include_router(members_router)
    app.include_router(tasks_router)
    return app

app = create_app()
