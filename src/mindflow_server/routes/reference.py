"""Reference data endpoints — flow definitions and support resources.

Read-only views over the YAML loaded by ``FlowCatalog``.  They don't
require authentication since the data is public reference information.
"""

from fastapi import APIRouter, Depends

from mindflow.catalog import FlowCatalog
from mindflow.engine import to_payload

from mindflow_server.dependencies import get_catalog

router = APIRouter(tags=["reference"])


@router.get("/definitions")
def list_definitions(catalog: FlowCatalog = Depends(get_catalog)) -> list[dict]:
    """Summaries of every flow definition."""
    return [
        {
            "flow_id": d.flow_id,
            "title": d.title,
            "description": d.description,
            "steps": len(d.steps),
        }
        for d in catalog.definitions.values()
    ]


@router.get("/definitions/{definition_id}")
def get_definition(
    definition_id: str,
    catalog: FlowCatalog = Depends(get_catalog),
) -> dict:
    """Full definition with every step flattened for rendering."""
    definition = catalog.get_definition(definition_id)
    return {
        "flow_id": definition.flow_id,
        "title": definition.title,
        "description": definition.description,
        "steps": [
            {
                **to_payload(step).model_dump(),
                "conditional": step.is_conditional,
            }
            for step in definition.steps
        ],
    }


@router.get("/support-resources")
def list_support_resources(catalog: FlowCatalog = Depends(get_catalog)) -> list[dict]:
    """Crisis and support lines, highest priority first."""
    return [r.model_dump() for r in catalog.support_resources]
