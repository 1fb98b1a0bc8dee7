"""
Define Google Slides commands.

- gog slides info <presentationId>
- gog slides delete-slide <presentationId> <slideId>
"""

from __future__ import annotations

import logging
from typing import Any

import typer

from ..cli_common import handle_errors, print_record, print_rows
from ..confirm import confirm_destructive
from ..core.errors import UsageError
from ..google_calls import execute
from ..runtime import get_runtime

logger = logging.getLogger(__name__)

slides_app = typer.Typer(
    name="slides",
    help="Google Slides.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _slide_title(slide: dict[str, Any]) -> str:
    """Text of the first title placeholder on a slide, if any."""
    for element in slide.get("pageElements") or []:
        shape = element.get("shape") or {}
        placeholder = (shape.get("placeholder") or {}).get("type", "")
        if placeholder not in ("TITLE", "CENTERED_TITLE"):
            continue
        runs = (shape.get("text") or {}).get("textElements") or []
        return "".join((r.get("textRun") or {}).get("content", "") for r in runs).strip()
    return ""


@slides_app.command("info")
@handle_errors
def slides_info_cmd(
    ctx: typer.Context,
    presentation_id: str = typer.Argument(..., help="Presentation ID"),
) -> None:
    """Show presentation metadata and slides."""
    runtime = get_runtime(ctx)
    presentation_id = presentation_id.strip()
    if not presentation_id:
        raise UsageError("empty presentationId")

    service = runtime.service("slides", "v1")
    pres = execute(service.presentations().get(presentationId=presentation_id))
    slides = [
        {"index": i + 1, "objectId": s.get("objectId", ""), "title": _slide_title(s)}
        for i, s in enumerate(pres.get("slides") or [])
    ]
    info = {
        "presentationId": pres.get("presentationId", presentation_id),
        "title": pres.get("title", ""),
        "slideCount": len(slides),
        "slides": slides,
    }

    if runtime.is_json:
        runtime.write_json(info)
        return
    print_record(
        [("id", info["presentationId"]), ("title", info["title"]), ("slides", info["slideCount"])]
    )
    if slides:
        print_rows(runtime, ["#", "SLIDE_ID", "TITLE"], [[s["index"], s["objectId"], s["title"]] for s in slides])


@slides_app.command("delete-slide")
@handle_errors
def slides_delete_slide_cmd(
    ctx: typer.Context,
    presentation_id: str = typer.Argument(..., help="Presentation ID"),
    slide_id: str = typer.Argument(..., help="Slide object ID"),
) -> None:
    """Delete a slide from a presentation."""
    runtime = get_runtime(ctx)
    presentation_id = presentation_id.strip()
    slide_id = slide_id.strip()
    if not presentation_id or not slide_id:
        raise UsageError("presentationId/slideId required")

    request = {"requests": [{"deleteObject": {"objectId": slide_id}}]}
    confirm_destructive(
        runtime,
        f"delete slide {slide_id}",
        op="slides.delete_slide",
        request={"presentation_id": presentation_id, **request},
    )

    service = runtime.service("slides", "v1")
    pres = execute(service.presentations().get(presentationId=presentation_id, fields="slides.objectId"))
    deleted = slide_id in {s.get("objectId") for s in pres.get("slides") or []}
    if deleted:
        execute(service.presentations().batchUpdate(presentationId=presentation_id, body=request))
    else:
        logger.info("slide %s not found in %s; nothing to delete", slide_id, presentation_id)

    if runtime.is_json:
        runtime.write_json({"deleted": deleted, "presentationId": presentation_id, "slideId": slide_id})
        return
    print_record([("deleted", deleted), ("presentation_id", presentation_id), ("slide_id", slide_id)])
