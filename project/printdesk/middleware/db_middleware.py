# printdesk/middleware/db_middleware.py

from starlette.types import ASGIApp, Receive, Scope, Send
from printdesk.utils.database import AsyncSessionLocal


class DBSessionMiddleware:
    """
    Opens one AsyncSession per HTTP request as request.state.db.

    Services commit explicitly; whatever is left uncommitted when the
    request ends (an exception midway, a forgotten commit) is rolled back.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        async with AsyncSessionLocal() as session:
            state["db"] = session
            try:
                await self.app(scope, receive, send)
            finally:
                if session.in_transaction():
                    await session.rollback()
