"""HTTP routes for the mail API.

Every route is a plain ``def`` so FastAPI runs it in its worker threadpool;
the IMAP and SMTP calls underneath are blocking.

AIDEV-NOTE: Error mapping
- SessionError (auth rejected, server unreachable) -> 401
- OperationError / TransportError -> 500 with a fixed per-route message
- ValueError from request content (bad address, bad base64) -> 400
- login-fetch answers every failure with 401
- Server diagnostics are logged, never returned
"""

from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from shoora_mail.api.schemas import (
    CredentialsRequest,
    DraftRequest,
    FolderRequest,
    MarkReadRequest,
    MessageRequest,
    MoveRequest,
    ReplyRequest,
    SendRequest,
    ToggleImportantRequest,
    ToggleStarRequest,
)
from shoora_mail.exceptions import MailError, SessionError
from shoora_mail.lib.logger import get_logger
from shoora_mail.services.mail_service import MailService

logger = get_logger(__name__)

router = APIRouter()

LOGIN_FAILED = "Invalid Credentials or Connection Failed"
SESSION_FAILED = "Authentication failed or mail server unreachable"


@lru_cache(maxsize=1)
def get_mail_service() -> MailService:
    """Shared MailService; it holds no per-user state."""
    return MailService()


def ok(data=None, message: str | None = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def error_response(route: str, error: Exception, message: str) -> JSONResponse:
    """
    Map an exception raised by a use case onto the response envelope.

    Args:
        route: Route name, for logs
        error: Exception raised by the service
        message: Generic message for server-side failures

    Returns:
        JSONResponse with the matching status code
    """
    if isinstance(error, SessionError):
        logger.warning(f"{route}: session failed ({type(error).__name__})")
        return failure(401, SESSION_FAILED)
    if isinstance(error, ValueError):
        logger.info(f"{route}: rejected request: {error}")
        return failure(400, str(error))
    logger.error(f"{route}: {type(error).__name__}: {error}")
    return failure(500, message)


# ============================================================================
# Fetch
# ============================================================================
@router.post("/login-fetch")
def login_fetch(
    request: CredentialsRequest,
    background_tasks: BackgroundTasks,
    service: MailService = Depends(get_mail_service),
):
    """Validate credentials by fetching the inbox, then queue the welcome mail."""
    try:
        result = service.fetch_inbox(request.credentials())
    except (MailError, ValueError) as e:
        logger.warning(f"login-fetch: {type(e).__name__}")
        return failure(401, LOGIN_FAILED)

    background_tasks.add_task(service.send_welcome, request.email.strip())
    return ok(result.to_dict())


@router.post("/inbox-fetch")
def inbox_fetch(request: CredentialsRequest, service: MailService = Depends(get_mail_service)):
    try:
        result = service.fetch_inbox(request.credentials())
    except (MailError, ValueError) as e:
        return error_response("inbox-fetch", e, "Failed to fetch inbox")
    return ok(result.to_dict())


@router.post("/folder-fetch")
def folder_fetch(request: FolderRequest, service: MailService = Depends(get_mail_service)):
    try:
        result = service.fetch_folder(request.credentials(), request.folder)
    except (MailError, ValueError) as e:
        return error_response("folder-fetch", e, "Failed to fetch folder emails")
    return ok(result.to_dict())


# ============================================================================
# Outbound
# ============================================================================
def _send_result_body(result, message: str) -> dict:
    body = ok(message=message)
    body["archived"] = result.archived
    if result.warnings:
        body["warnings"] = [str(warning) for warning in result.warnings]
    return body


@router.post("/send-mail")
def send_mail(request: SendRequest, service: MailService = Depends(get_mail_service)):
    try:
        result = service.send_mail(
            request.credentials(),
            request.to,
            request.subject,
            request.body,
            attachments=request.outbound_attachments(),
            html_body=request.html,
        )
    except (MailError, ValueError) as e:
        return error_response("send-mail", e, "Failed to send email")
    return _send_result_body(result, "Email Sent Successfully")


@router.post("/reply-mail")
def reply_mail(request: ReplyRequest, service: MailService = Depends(get_mail_service)):
    try:
        result = service.reply_mail(
            request.credentials(),
            request.to,
            request.subject,
            request.body,
            original_message_id=request.original_message_id,
            attachments=request.outbound_attachments(),
        )
    except (MailError, ValueError) as e:
        return error_response("reply-mail", e, "Failed to send reply")
    return _send_result_body(result, "Reply Sent Successfully")


@router.post("/forward-mail")
def forward_mail(request: SendRequest, service: MailService = Depends(get_mail_service)):
    try:
        result = service.forward_mail(
            request.credentials(),
            request.to,
            request.subject,
            request.body,
            attachments=request.outbound_attachments(),
        )
    except (MailError, ValueError) as e:
        return error_response("forward-mail", e, "Failed to forward email")
    return _send_result_body(result, "Email Forwarded Successfully")


@router.post("/save-draft")
def save_draft(request: DraftRequest, service: MailService = Depends(get_mail_service)):
    try:
        service.save_draft(
            request.credentials(),
            request.to,
            request.subject,
            request.body,
            html_body=request.html,
        )
    except (MailError, ValueError) as e:
        return error_response("save-draft", e, "Failed to save draft")
    return ok(message="Draft saved successfully")


# ============================================================================
# Flags and mutations
# ============================================================================
@router.post("/mark-read")
def mark_read(request: MarkReadRequest, service: MailService = Depends(get_mail_service)):
    try:
        service.mark_read(request.credentials(), request.message_id, request.read)
    except (MailError, ValueError) as e:
        return error_response("mark-read", e, "Failed to mark email")
    return ok(message=f"Email marked as {'read' if request.read else 'unread'}")


@router.post("/toggle-star")
def toggle_star(request: ToggleStarRequest, service: MailService = Depends(get_mail_service)):
    try:
        service.toggle_starred(request.credentials(), request.message_id, request.starred)
    except (MailError, ValueError) as e:
        return error_response("toggle-star", e, "Failed to mark email")
    return ok(message=f"Email marked as {'starred' if request.starred else 'unstarred'}")


@router.post("/toggle-important")
def toggle_important(
    request: ToggleImportantRequest,
    service: MailService = Depends(get_mail_service),
):
    try:
        service.toggle_important(request.credentials(), request.message_id, request.important)
    except (MailError, ValueError) as e:
        return error_response("toggle-important", e, "Failed to mark email")
    return ok(message=f"Email marked as {'important' if request.important else 'unimportant'}")


@router.post("/delete-mail")
def delete_mail(request: MessageRequest, service: MailService = Depends(get_mail_service)):
    try:
        service.delete_message(request.credentials(), request.message_id)
    except (MailError, ValueError) as e:
        return error_response("delete-mail", e, "Failed to delete email")
    return ok(message="Email deleted successfully")


@router.post("/move-mail")
def move_mail(request: MoveRequest, service: MailService = Depends(get_mail_service)):
    try:
        service.move_message(request.credentials(), request.message_id, request.destination_folder)
    except (MailError, ValueError) as e:
        return error_response("move-mail", e, "Failed to move email")
    return ok(message="Email moved successfully")
