from fastapi import APIRouter, Depends, HTTPException, status

from json_pilot.api.dependencies import get_formatting_options, open_session, raise_for_errors
from json_pilot.api.schemas import QueryRequest, QueryResponse
from json_pilot.core.query import render_result
from json_pilot.models import FormattingOptions

router = APIRouter(tags=["query"])


@router.post("/query", response_model=QueryResponse)
async def query(
    body: QueryRequest,
    formatting: FormattingOptions = Depends(get_formatting_options),
) -> QueryResponse:
    session, notifier = open_session(body.text, formatting)
    result = session.run_query(body.query, body.kind)
    raise_for_errors(notifier)
    if result is None:
        # empty document
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=notifier.messages()[0])
    return QueryResponse(kind=result.kind, value=result.value, rendered=render_result(result))
