"""Integration tests for the HTTP API.

The real application, service, executor and session code run against the
in-memory IMAP server and SMTP fake.
"""

import base64
from email import message_from_bytes, policy

import pytest
from fastapi.testclient import TestClient
from imapclient import DRAFT, FLAGGED, SEEN
from imapclient.exceptions import IMAPClientError

from shoora_mail.api.app import create_app
from shoora_mail.lib.config import ServerConfig

AUTH = {"email": "john.doe@example.com", "password": "secret"}


@pytest.fixture
def client(mail_service):
    app = create_app(service=mail_service, config=ServerConfig(api_prefix="/api"))
    return TestClient(app)


def post(client, route, **body):
    return client.post(f"/api/{route}", json={**AUTH, **body})


@pytest.mark.integration
class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# ============================================================================
# Fetch routes
# ============================================================================


@pytest.mark.integration
class TestLoginFetch:

    def test_login_returns_inbox_and_sends_welcome(self, client, mailer):
        response = post(client, "login-fetch")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["userName"] == "John Doe"
        assert [m["id"] for m in body["data"]["messages"]] == [5, 4, 3]

        # Background task runs after the response in TestClient
        assert [d["to"] for d in mailer.sent] == [["john.doe@example.com"]]

    def test_login_failure_is_401(self, client, mailer):
        response = client.post("/api/login-fetch", json={"email": AUTH["email"], "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Invalid Credentials or Connection Failed",
        }
        assert mailer.sent == []

    def test_login_unreachable_server_is_401(self, client, imap_server):
        imap_server.unreachable = True

        response = post(client, "login-fetch")

        assert response.status_code == 401

    def test_login_invalid_address_is_401(self, client):
        response = client.post("/api/login-fetch", json={"email": "nobody", "password": "x"})

        assert response.status_code == 401

    def test_welcome_failure_does_not_affect_login(self, client, mailer):
        mailer.error = OSError("smtp down")

        response = post(client, "login-fetch")

        assert response.status_code == 200
        assert response.json()["success"] is True


@pytest.mark.integration
class TestFetchRoutes:

    def test_inbox_fetch(self, client):
        response = post(client, "inbox-fetch")

        assert response.status_code == 200
        messages = response.json()["data"]["messages"]
        assert len(messages) == 3
        assert messages[0]["subject"] == "Message 5"
        assert messages[0]["unread"] is True
        assert messages[1]["unread"] is False

    def test_inbox_fetch_wrong_password(self, client):
        response = client.post("/api/inbox-fetch", json={"email": AUTH["email"], "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_folder_fetch(self, client, imap_server):
        post(client, "move-mail", messageId=1, destinationFolder="Archive")

        response = post(client, "folder-fetch", folder="Archive")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["folder"] == "Archive"
        assert [m["subject"] for m in data["messages"]] == ["Message 1"]
        assert data["messages"][0]["folder"] == "Archive"

    def test_unknown_folder_is_empty(self, client):
        response = post(client, "folder-fetch", folder="No Such Folder")

        assert response.status_code == 200
        assert response.json()["data"]["messages"] == []

    def test_server_failure_is_500_with_generic_message(self, client, imap_server):
        imap_server.fail_on["FETCH"] = IMAPClientError("NO [SERVERBUG] oops")

        response = post(client, "inbox-fetch")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to fetch inbox"}

    def test_missing_fields_are_422(self, client):
        response = client.post("/api/inbox-fetch", json={"email": AUTH["email"]})

        assert response.status_code == 422


# ============================================================================
# Flag and mutation routes
# ============================================================================


@pytest.mark.integration
class TestMutationRoutes:

    def test_mark_unread_then_fetch(self, client):
        response = post(client, "mark-read", messageId=4, read=False)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Email marked as unread"}
        messages = post(client, "inbox-fetch").json()["data"]["messages"]
        assert {m["id"]: m["unread"] for m in messages}[4] is True

    def test_toggle_star(self, client, imap_server):
        response = post(client, "toggle-star", messageId=2, starred=True)

        assert response.json()["message"] == "Email marked as starred"
        assert FLAGGED in imap_server.flags("INBOX", 2)

    def test_toggle_important_accepts_uid_alias(self, client, imap_server):
        response = post(client, "toggle-important", uid=2, important=True)

        assert response.status_code == 200
        assert response.json()["message"] == "Email marked as important"
        assert b"Important" in imap_server.flags("INBOX", 2)

    def test_delete(self, client, imap_server):
        response = post(client, "delete-mail", messageId=5)

        assert response.json() == {"success": True, "message": "Email deleted successfully"}
        ids = [m["id"] for m in post(client, "inbox-fetch").json()["data"]["messages"]]
        assert 5 not in ids

    def test_move_to_missing_folder_is_500(self, client, imap_server):
        response = post(client, "move-mail", messageId=2, destinationFolder="Nowhere")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to move email"}
        assert 2 in imap_server.uids("INBOX")

    def test_non_numeric_message_id_is_422(self, client):
        response = post(client, "delete-mail", messageId="abc")

        assert response.status_code == 422


# ============================================================================
# Outbound routes
# ============================================================================


@pytest.mark.integration
class TestOutboundRoutes:

    def test_send_mail_with_attachment(self, client, mailer, imap_server):
        attachment = {
            "filename": "notes.txt",
            "content": base64.b64encode(b"remember the milk").decode(),
            "contentType": "text/plain",
        }

        response = post(
            client,
            "send-mail",
            to="jane@example.com",
            subject="Notes",
            body="See attached",
            attachments=[attachment],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Email Sent Successfully"
        assert body["archived"] is True

        msg = message_from_bytes(mailer.sent[0]["message"], policy=policy.default)
        (part,) = list(msg.iter_attachments())
        assert part.get_filename() == "notes.txt"
        assert part.get_payload(decode=True) == b"remember the milk"
        assert len(imap_server.uids("Sent")) == 1

    def test_send_succeeds_when_archive_fails(self, client, mailer, imap_server):
        del imap_server.folders["Sent"]

        response = post(client, "send-mail", to=["jane@example.com"], subject="Hi", body="Hello")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["archived"] is False
        assert body["warnings"]
        assert len(mailer.sent) == 1

    def test_send_failure_is_500(self, client, mailer):
        mailer.error = OSError("connection reset")

        response = post(client, "send-mail", to="jane@example.com", subject="Hi", body="Hello")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to send email"}

    def test_send_rejected_credentials_is_401(self, client, mailer):
        mailer.accounts[AUTH["email"]] = "rotated"

        response = post(client, "send-mail", to="jane@example.com", subject="Hi", body="Hello")

        assert response.status_code == 401

    def test_bad_attachment_is_400(self, client, mailer):
        response = post(
            client,
            "send-mail",
            to="jane@example.com",
            subject="Hi",
            body="Hello",
            attachments=[{"filename": "x.bin", "content": "***"}],
        )

        assert response.status_code == 400
        assert mailer.sent == []

    def test_reply(self, client, mailer):
        response = post(
            client,
            "reply-mail",
            to="jane@example.com",
            subject="Plans",
            body="Works for me",
            originalMessageId="<orig@example.com>",
        )

        assert response.json()["message"] == "Reply Sent Successfully"
        msg = message_from_bytes(mailer.sent[0]["message"], policy=policy.default)
        assert msg["Subject"] == "Re: Plans"
        assert msg["In-Reply-To"] == "<orig@example.com>"

    def test_forward(self, client, mailer):
        response = post(client, "forward-mail", to="bob@example.com", subject="Plans", body="FYI")

        assert response.json()["message"] == "Email Forwarded Successfully"
        msg = message_from_bytes(mailer.sent[0]["message"], policy=policy.default)
        assert msg["Subject"] == "Fwd: Plans"

    def test_save_draft(self, client, imap_server):
        response = post(client, "save-draft", to="a@b.com", subject="x", body="y")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Draft saved successfully"}
        (uid,) = imap_server.uids("Drafts")
        assert imap_server.flags("Drafts", uid) == {SEEN, DRAFT}

    def test_save_draft_failure_is_500(self, client, imap_server):
        del imap_server.folders["Drafts"]

        response = post(client, "save-draft", to="a@b.com", subject="x", body="y")

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to save draft"
