"""Node Categories API routes.

Exposes the node classification table to the frontend so the workflow
preview can label and color nodes the same way the simulator does.
"""

from typing import List

from fastapi import APIRouter

from api.schemas.simulation import ClassifyRequest, ClassifyResponse, NodeCategoryInfo
from core.exceptions import NotFoundError
from simulator.classifier import classify, describe_categories, short_type

router = APIRouter()


@router.get("/", response_model=List[NodeCategoryInfo], summary="List node categories")
async def list_node_categories():
    """Categories in matching order; the first matching rule wins."""
    return describe_categories()


@router.post("/classify", response_model=ClassifyResponse, summary="Classify node types")
async def classify_node_types(request: ClassifyRequest):
    """Classify raw node type strings such as ``n8n-nodes-base.httpRequest``."""
    return {
        "results": [
            {
                "node_type": node_type,
                "category": classify(node_type).value,
                "short_type": short_type(node_type),
            }
            for node_type in request.node_types
        ]
    }


@router.get("/{category}", response_model=NodeCategoryInfo, summary="Get one node category")
async def get_node_category(category: str):
    """Look up a category by identifier, e.g. ``http_request``."""
    for entry in describe_categories():
        if entry["category"] == category:
            return entry
    raise NotFoundError(f"Node category '{category}' not found")
