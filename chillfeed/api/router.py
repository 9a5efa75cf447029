from fastapi import APIRouter

from chillfeed.api.routes.cleanup import router as cleanup_router
from chillfeed.api.routes.comments import router as comments_router
from chillfeed.api.routes.feed import router as feed_router
from chillfeed.api.routes.likes import router as likes_router
from chillfeed.api.routes.posts import router as posts_router
from chillfeed.api.routes.status import router as status_router

router = APIRouter()
router.include_router(status_router, prefix="/api", tags=["status"])
router.include_router(feed_router, prefix="/api", tags=["feed"])
router.include_router(posts_router, prefix="/api", tags=["posts"])
router.include_router(comments_router, prefix="/api", tags=["comments"])
router.include_router(likes_router, prefix="/api", tags=["likes"])
router.include_router(cleanup_router, prefix="/api", tags=["cleanup"])
