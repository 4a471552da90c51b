"""
Information page.

Returns a small HTML snippet with the number of phonebook entries and
the server time at which the page was generated.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from phonebook_api.app.services.person_service import DirectorySummary, PersonService, get_person_service

router = APIRouter()

TIMESTAMP_FORMAT = "%a %b %d %Y %H:%M:%S GMT%z (%Z)"


def render_info(summary: DirectorySummary) -> str:
    return (
        f"<p>Phonebook has info for {summary.count} people</p>\n"
        f"<p>{summary.generated_at.strftime(TIMESTAMP_FORMAT)}</p>\n"
    )


@router.get("", response_class=HTMLResponse)
async def get_info(service: PersonService = Depends(get_person_service)) -> HTMLResponse:
    summary = await service.count_and_timestamp()
    return HTMLResponse(content=render_info(summary))
