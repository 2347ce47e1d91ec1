"""
Bowling Chat - Rate Limiting

Per-remote-address limits via slowapi. The limiter is shared by the app
(app.state.limiter) and the route decorators.

Usage:
    from middleware.rate_limit import limiter

    @router.post('/v1/chat')
    @limiter.limit(settings.infra.chat_rate_limit)
    async def chat(request: Request, ...):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
