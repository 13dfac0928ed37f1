"""
FastAPI backend for a work/personal todo list.

The ASGI application lives in `todo_api.main` (`uvicorn todo_api.main:app`);
`todo_api.main.create_app` builds a fresh instance with explicit settings.
"""
