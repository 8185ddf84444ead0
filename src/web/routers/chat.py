"""Chat router with SSE streaming and in-memory panel sessions."""
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from src.assistant.chat.session import FAQ_CHIPS
from src.shared.errors import AppErrors
from src.web.dependencies import chat_sessions, get_chat_service, read_json_object

log = logging.getLogger(__name__)
router = APIRouter()


async def _read_question(request: Request) -> str | None:
    """The trimmed question, or None when the body is not a JSON object."""
    body = await read_json_object(request)
    if body is None:
        return None
    return str(body.get("question", "")).strip()


def _invalid_body() -> JSONResponse:
    return JSONResponse({"error": AppErrors.BODY_NOT_OBJECT}, status_code=400)


# ── Stateless answers ──


@router.post("/api/chat/send")
async def chat_send(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    question = str(body.get("question", "")).strip()
    session_id = str(body.get("session_id") or "") or None

    if not question:
        return JSONResponse({"error": AppErrors.QUESTION_EMPTY}, status_code=400)

    session = chat_sessions.get(session_id) if session_id else None
    if session_id and session is None:
        return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)

    async def event_generator():
        try:
            yield {"event": "thinking", "data": json.dumps({"message": "Processing..."})}

            if session is not None:
                reply = await session.send(question)
                if reply is None:
                    yield {"event": "error", "data": json.dumps({"message": "Reply discarded."})}
                    return
                payload = {"answer": reply.content, "source": None}
            else:
                result = await get_chat_service().answer(question)
                payload = {"answer": result.answer, "source": result.source}

            yield {"event": "answer", "data": json.dumps(payload)}

        except Exception:
            log.exception("Chat error")
            yield {"event": "error", "data": json.dumps({"message": AppErrors.CHAT_UNAVAILABLE})}

    return EventSourceResponse(event_generator())


@router.post("/api/chat/respond")
async def chat_respond(request: Request):
    question = await _read_question(request)
    if question is None:
        return _invalid_body()
    if not question:
        return JSONResponse({"error": AppErrors.QUESTION_EMPTY}, status_code=400)
    result = await get_chat_service().answer(question)
    return {"answer": result.answer, "source": result.source}


@router.get("/api/chat/faq")
async def faq_chips():
    return {"chips": list(FAQ_CHIPS)}


# ── Panel sessions ──


@router.post("/api/chat/sessions")
async def create_session(request: Request):
    """Open the browser's chat session, starting one if it has none left."""
    session = chat_sessions.get(request.session.get("chat_session_id") or "")
    if session is None:
        session = chat_sessions.create(get_chat_service())
    session.open()
    request.session["chat_session_id"] = session.session_id
    return session.to_dict()


@router.get("/api/chat/sessions/{session_id}/messages")
async def get_messages(session_id: str):
    session = chat_sessions.get(session_id)
    if not session:
        return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)
    return [m.to_dict() for m in session.messages]


@router.post("/api/chat/sessions/{session_id}/messages")
async def post_message(session_id: str, request: Request):
    session = chat_sessions.get(session_id)
    if not session:
        return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)
    question = await _read_question(request)
    if question is None:
        return _invalid_body()
    if not question:
        return JSONResponse({"error": AppErrors.QUESTION_EMPTY}, status_code=400)

    reply = await session.send(question)
    return {
        "reply": reply.to_dict() if reply else None,
        "session": session.to_dict(),
    }


@router.post("/api/chat/sessions/{session_id}/open")
async def open_session(session_id: str):
    session = chat_sessions.get(session_id)
    if not session:
        return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)
    session.open()
    return session.to_dict()


@router.post("/api/chat/sessions/{session_id}/close")
async def close_session(session_id: str):
    session = chat_sessions.get(session_id)
    if not session:
        return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)
    session.close()
    return session.to_dict()


@router.delete("/api/chat/sessions/{session_id}")
async def delete_session(session_id: str):
    if chat_sessions.delete(session_id):
        return {"status": "deleted"}
    return JSONResponse({"error": AppErrors.SESSION_NOT_FOUND}, status_code=404)
