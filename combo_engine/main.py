from fastapi import FastAPI

from .error_handlers import register_error_handlers
from .routes import combo_rule, home, scoring

app = FastAPI(title="Combo Rule Engine")

register_error_handlers(app)

app.include_router(home.router)
app.include_router(combo_rule.router)
app.include_router(scoring.router)
