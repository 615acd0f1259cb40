"""ASGI entrypoint for the meal adherence API."""

from meal_adherence.api.app import create_app
from meal_adherence.containers import build_container

app = create_app(build_container())
