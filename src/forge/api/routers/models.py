from __future__ import annotations

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from ...domain.chat_models import ModelOption
from ...services.model_catalog import DEFAULT_MODEL_ID, ModelRouter

router = APIRouter(prefix="/models", tags=["models"])


class ModelCatalogResponse(BaseModel):
    models: List[ModelOption]
    default: str


@router.get("", response_model=ModelCatalogResponse)
def list_models() -> ModelCatalogResponse:
    return ModelCatalogResponse(models=ModelRouter().catalog(), default=DEFAULT_MODEL_ID)
