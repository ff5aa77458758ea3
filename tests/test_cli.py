"""Tests for the admin creation command."""
import argparse
import pytest
from unittest.mock import AsyncMock

from marketplace import cli
from marketplace.domain.exceptions import EmailAlreadyRegisteredException
from marketplace.domain.models import User, UserRole
from marketplace.infrastructure.database import build_engine, build_session_factory, create_schema
from marketplace.infrastructure.repositories_postgres import PostgresUserRepository
from marketplace.services.auth_service import verify_password


def scripted(answers: dict):
    """Prompt function answering from a label -> value mapping."""
    asked = []

    def prompt(label: str) -> str:
        asked.append(label)
        return answers[label]

    prompt.asked = asked
    return prompt


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)

    yield build_session_factory(engine)

    await engine.dispose()


def test_parse_args_prompts_for_missing_values() -> None:
    """Test every missing field is prompted for."""
    prompt = scripted({"Email: ": " admin@zst.dz ", "Full Name: ": "Admin ZST", "Phone (optional): ": ""})

    args = cli.parse_args([], prompt=prompt, prompt_secret=lambda label: "motdepasse123")

    assert args.email == "admin@zst.dz"
    assert args.password == "motdepasse123"
    assert args.full_name == "Admin ZST"
    assert args.phone is None
    assert args.skip_init is False


def test_parse_args_uses_flags() -> None:
    """Test flags skip their prompts but the password is still asked."""
    prompt = scripted({})

    args = cli.parse_args(
        ["--email", "admin@zst.dz", "--full-name", "Admin ZST", "--phone", "0555000000", "--skip-init"],
        prompt=prompt,
        prompt_secret=lambda label: "motdepasse123",
    )

    assert prompt.asked == []
    assert args.phone == "0555000000"
    assert args.password == "motdepasse123"
    assert args.skip_init is True


@pytest.mark.asyncio
async def test_create_admin(session_factory) -> None:
    """Test the admin is committed with a hashed password."""
    # Act
    user = await cli.create_admin(
        "Admin@ZST.dz", "motdepasse123", "Admin ZST", phone="0555000000", session_factory=session_factory
    )

    # Assert
    async with session_factory() as session:
        stored = await PostgresUserRepository(session).get_by_id(user.user_id)
    assert stored.email == "admin@zst.dz"
    assert stored.role == UserRole.ADMIN
    assert verify_password("motdepasse123", stored.password_hash)


@pytest.mark.asyncio
async def test_create_admin_duplicate(session_factory) -> None:
    """Test a second admin with the same email is refused."""
    await cli.create_admin("admin@zst.dz", "motdepasse123", "Admin ZST", session_factory=session_factory)

    with pytest.raises(EmailAlreadyRegisteredException):
        await cli.create_admin("admin@zst.dz", "autrepasse123", "Autre", session_factory=session_factory)


def namespace(**overrides) -> argparse.Namespace:
    values = {
        "email": "admin@zst.dz",
        "password": "motdepasse123",
        "full_name": "Admin ZST",
        "phone": None,
        "skip_init": True,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_main_missing_input(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test main fails without a password."""
    run = AsyncMock()
    monkeypatch.setattr(cli, "parse_args", lambda argv: namespace(password=""))
    monkeypatch.setattr(cli, "_run", run)

    assert cli.main([]) == 1
    run.assert_not_called()


def test_main_success(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    """Test main reports the created admin."""
    admin = User(email="admin@zst.dz", password_hash="x", full_name="Admin ZST", role=UserRole.ADMIN)
    monkeypatch.setattr(cli, "parse_args", lambda argv: namespace())
    monkeypatch.setattr(cli, "_run", AsyncMock(return_value=admin))

    assert cli.main([]) == 0
    assert str(admin.user_id) in capsys.readouterr().out


def test_main_domain_error(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    """Test domain errors are reported without a traceback."""
    monkeypatch.setattr(cli, "parse_args", lambda argv: namespace())
    monkeypatch.setattr(cli, "_run", AsyncMock(side_effect=EmailAlreadyRegisteredException("admin@zst.dz")))

    assert cli.main([]) == 1
    assert "admin@zst.dz" in capsys.readouterr().err
