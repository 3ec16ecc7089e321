from api.endpoints import best_pick, embeddings, grouping
from fastapi import APIRouter

api_router = APIRouter()
api_router.include_router(embeddings.router, prefix="/embeddings", tags=["Image Embeddings"])
api_router.include_router(grouping.router, prefix="/groups", tags=["Grouping Similar Photos"])
api_router.include_router(best_pick.router, prefix="/best-pick", tags=["Best Photo Selection"])
