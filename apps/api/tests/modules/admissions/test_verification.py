"""
Unit tests for the email verification service.

These tests cover:
- Code issuance (registered emails, supersession, delivery failures)
- Code validation (single use, expiry, wrong codes)
- A full request/verify handshake against an in-memory challenge store
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.email import DeliveryReceipt
from app.modules.admissions.errors import (
    AlreadyRegisteredError,
    ConflictError,
    EmailDeliveryError,
    InvalidOrExpiredCodeError,
    StorageError,
)
from app.modules.admissions.models import EmailVerification
from app.modules.admissions.verification import (
    generate_otp,
    request_verification,
    verify_code,
)

REPOSITORY = "app.modules.admissions.verification.repository"
SEND_EMAIL = "app.modules.admissions.verification.send_email"


def _receipt(email: str) -> DeliveryReceipt:
    return DeliveryReceipt(message_id="log-1", provider="log", to_email=email)


class TestGenerateOtp:
    def test_is_six_digits(self):
        for _ in range(200):
            otp = generate_otp()
            assert len(otp) == 6
            assert otp.isdigit()


class TestRequestVerification:
    """Tests for request_verification."""

    @pytest.mark.asyncio
    async def test_registered_email_is_refused_without_issuing_code(self, mock_db):
        with (
            patch(REPOSITORY) as mock_repo,
            patch(SEND_EMAIL, new_callable=AsyncMock) as mock_send,
        ):
            mock_repo.email_registered = AsyncMock(return_value=True)
            mock_repo.replace_verification = AsyncMock()

            with pytest.raises(AlreadyRegisteredError) as exc_info:
                await request_verification(mock_db, "Juan.DelaCruz@example.com")

            assert exc_info.value.status_code == 409
            assert exc_info.value.message == "This email is already registered."
            mock_repo.replace_verification.assert_not_called()
            mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_issues_code_with_ten_minute_expiry(self, mock_db):
        with (
            patch(REPOSITORY) as mock_repo,
            patch(SEND_EMAIL, new_callable=AsyncMock) as mock_send,
        ):
            mock_repo.email_registered = AsyncMock(return_value=False)
            mock_repo.replace_verification = AsyncMock()
            mock_send.return_value = _receipt("new.applicant@example.com")

            before = datetime.now(UTC)
            result = await request_verification(mock_db, "  New.Applicant@Example.com ")

            args = mock_repo.replace_verification.call_args.args
            email, otp, expires_at = args[1], args[2], args[3]
            assert email == "new.applicant@example.com"
            assert len(otp) == 6 and otp.isdigit()
            assert timedelta(minutes=9) < expires_at - before <= timedelta(minutes=10, seconds=5)
            assert result.expires_at == expires_at
            assert result.success is True

            send_kwargs = mock_send.call_args.kwargs
            assert send_kwargs["to_email"] == "new.applicant@example.com"
            assert otp in send_kwargs["body_text"]

    @pytest.mark.asyncio
    async def test_concurrent_request_surfaces_as_conflict(self, mock_db):
        with (
            patch(REPOSITORY) as mock_repo,
            patch(SEND_EMAIL, new_callable=AsyncMock) as mock_send,
        ):
            mock_repo.email_registered = AsyncMock(return_value=False)
            mock_repo.replace_verification = AsyncMock(
                side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
            )

            with pytest.raises(ConflictError):
                await request_verification(mock_db, "new.applicant@example.com")

            mock_db.rollback.assert_awaited_once()
            mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_failure_surfaces_as_delivery_error(
        self, mock_db, failing_send_email
    ):
        with (
            patch(REPOSITORY) as mock_repo,
            patch(SEND_EMAIL, failing_send_email),
        ):
            mock_repo.email_registered = AsyncMock(return_value=False)
            mock_repo.replace_verification = AsyncMock()

            with pytest.raises(EmailDeliveryError) as exc_info:
                await request_verification(mock_db, "new.applicant@example.com")

            assert exc_info.value.status_code == 502
            assert exc_info.value.diagnostic == "domain not verified"
            # The stored challenge is left for the next request to supersede
            mock_repo.replace_verification.assert_awaited_once()



class TestVerifyCode:
    """Tests for verify_code."""

    @pytest.mark.asyncio
    async def test_valid_code_is_consumed(self, mock_db):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.consume_verification = AsyncMock(return_value=uuid4())

            before = datetime.now(UTC)
            result = await verify_code(mock_db, "New.Applicant@example.com", " 482915 ")

            assert result.success is True
            assert result.email == "new.applicant@example.com"
            args = mock_repo.consume_verification.call_args.args
            assert args[1:3] == ("new.applicant@example.com", "482915")
            assert args[3] >= before

    @pytest.mark.asyncio
    async def test_wrong_or_expired_code_fails(self, mock_db):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.consume_verification = AsyncMock(return_value=None)

            with pytest.raises(InvalidOrExpiredCodeError) as exc_info:
                await verify_code(mock_db, "new.applicant@example.com", "000000")

            assert exc_info.value.message == "Invalid or expired verification code."

    @pytest.mark.asyncio
    async def test_storage_failure(self, mock_db):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.consume_verification = AsyncMock(
                side_effect=OperationalError("DELETE", {}, Exception("connection lost"))
            )

            with pytest.raises(StorageError):
                await verify_code(mock_db, "new.applicant@example.com", "482915")

            mock_db.rollback.assert_awaited_once()


class _ChallengeStore:
    """In-memory stand-in for the verification repository functions."""

    def __init__(self):
        self.rows: dict[str, EmailVerification] = {}

    async def email_registered(self, db, email):
        return False

    async def replace_verification(self, db, email, otp, expires_at):
        self.rows[email] = EmailVerification(
            id=uuid4(), email=email, otp=otp, expires_at=expires_at
        )
        return self.rows[email]

    async def consume_verification(self, db, email, otp, now):
        # Let concurrent callers reach this point before any row is removed
        await asyncio.sleep(0)
        row = self.rows.get(email)
        if row is None or row.otp != otp or row.expires_at <= now:
            return None
        del self.rows[email]
        return row.id


class TestVerificationHandshake:
    """Request then verify, end to end through the service functions."""

    @pytest.mark.asyncio
    async def test_code_verifies_exactly_once(self, mock_db):
        store = _ChallengeStore()
        with (
            patch(REPOSITORY, store),
            patch(SEND_EMAIL, new_callable=AsyncMock) as mock_send,
        ):
            await request_verification(mock_db, "new.applicant@example.com")
            otp = store.rows["new.applicant@example.com"].otp
            assert otp in mock_send.call_args.kwargs["body_text"]

            result = await verify_code(mock_db, "new.applicant@example.com", otp)
            assert result.success is True

            with pytest.raises(InvalidOrExpiredCodeError):
                await verify_code(mock_db, "new.applicant@example.com", otp)

    @pytest.mark.asyncio
    async def test_concurrent_verifies_succeed_once(self, mock_db):
        store = _ChallengeStore()
        with (
            patch(REPOSITORY, store),
            patch(SEND_EMAIL, new_callable=AsyncMock),
        ):
            await request_verification(mock_db, "new.applicant@example.com")
            otp = store.rows["new.applicant@example.com"].otp

            results = await asyncio.gather(
                verify_code(mock_db, "new.applicant@example.com", otp),
                verify_code(mock_db, "new.applicant@example.com", otp),
                return_exceptions=True,
            )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, InvalidOrExpiredCodeError)]
        assert len(successes) == 1
        assert len(failures) == 1

    @pytest.mark.asyncio
    async def test_superseded_code_fails(self, mock_db):
        store = _ChallengeStore()
        with (
            patch(REPOSITORY, store),
            patch(SEND_EMAIL, new_callable=AsyncMock),
        ):
            await request_verification(mock_db, "new.applicant@example.com")
            first = store.rows["new.applicant@example.com"]
            # Force a distinct code for the second request
            with patch(
                "app.modules.admissions.verification.generate_otp",
                return_value="999999" if first.otp != "999999" else "111111",
            ):
                await request_verification(mock_db, "new.applicant@example.com")

            with pytest.raises(InvalidOrExpiredCodeError):
                await verify_code(mock_db, "new.applicant@example.com", first.otp)

    @pytest.mark.asyncio
    async def test_code_fails_after_window(self, mock_db):
        store = _ChallengeStore()
        with (
            patch(REPOSITORY, store),
            patch(SEND_EMAIL, new_callable=AsyncMock),
        ):
            await request_verification(mock_db, "new.applicant@example.com")
            row = store.rows["new.applicant@example.com"]
            # Simulate the 10-minute window passing
            row.expires_at = datetime.now(UTC) - timedelta(seconds=1)

            with pytest.raises(InvalidOrExpiredCodeError):
                await verify_code(mock_db, "new.applicant@example.com", row.otp)
