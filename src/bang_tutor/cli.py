"""
Command-line interface for Bang-Tutor.
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
import uvicorn

from .config import get_settings

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="bang-tutor",
        description="Bang-Tutor - agentic language tutor server",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    settings = get_settings()
    serve_parser = subparsers.add_parser("serve", help="Start the tutor server")
    serve_parser.add_argument("--host", default=settings.host, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    subparsers.add_parser("init", help="Initialize the tutor (create .env, data directory)")

    sessions_parser = subparsers.add_parser("sessions", help="List recent tutoring sessions")
    sessions_parser.add_argument("--limit", type=int, default=20, help="Number of sessions to show")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "config":
        ok = show_config(args.check)
        if not ok:
            sys.exit(1)
    elif args.command == "init":
        init_tutor()
    elif args.command == "sessions":
        asyncio.run(list_sessions(args.limit))
    else:
        parser.print_help()


def run_server(host: str, port: int, reload: bool) -> None:
    """Run the FastAPI server."""
    logger.info("Starting Bang-Tutor server", host=host, port=port)

    uvicorn.run(
        "bang_tutor.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
        log_level=get_settings().log_level.lower(),
    )


async def list_sessions(limit: int = 20) -> None:
    """Print the most recent sessions."""
    from .models import init_database
    from .store import TranscriptStore

    settings = get_settings()
    store = TranscriptStore(await init_database(settings.database_url))
    sessions = await store.list_sessions(limit=limit)

    if not sessions:
        print("No sessions yet.")
        return

    print(f"\n{'ID':<38} {'Topic':<8} {'Active':<8} {'Created':<20}")
    print("-" * 76)

    for s in sessions:
        created = s.created_at.strftime("%Y-%m-%d %H:%M:%S") if s.created_at else "N/A"
        print(f"{s.id:<38} {s.topic:<8} {'yes' if s.is_active else 'no':<8} {created:<20}")


def show_config(check: bool) -> bool:
    """Show current configuration. Returns False if the check found errors."""
    settings = get_settings()

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    print("\n=== Bang-Tutor Configuration ===\n")

    print("Server:")
    print(f"  Host: {settings.host}")
    print(f"  Port: {settings.port}")
    print(f"  Debug: {settings.debug}")

    print("\nLLM Providers:")
    print(f"  Default: {settings.default_provider}")
    print(f"  Default Model: {settings.default_model}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")
    print(f"  OpenAI Key: {mask(settings.openai_api_key)}")
    print(f"  OpenRouter Key: {mask(settings.openrouter_api_key)}")

    print("\nTutor:")
    print(f"  Native Language: {settings.native_language}")
    print(f"  Tool Call Timeout: {settings.tool_call_timeout_seconds or '(none)'}")
    print(f"  Max Tool Iterations: {settings.max_tool_iterations}")

    print("\nContent:")
    print(f"  Content Root: {settings.content_path}")
    print(f"  Git Commit: {settings.git_enabled}")
    print(f"  Git Push: {settings.git_push_enabled}")

    print("\nDatabase:")
    print(f"  URL: {settings.database_url}")

    if not check:
        return True

    print("\n=== Configuration Check ===\n")
    errors = []
    warnings = []

    provider_keys = {
        "anthropic": settings.anthropic_api_key,
        "openai": settings.openai_api_key,
        "openrouter": settings.openrouter_api_key,
    }
    if not provider_keys.get(settings.default_provider):
        errors.append(f"No API key set for the default provider ({settings.default_provider})")

    if settings.git_enabled and not (Path(settings.git_repo_dir) / ".git").exists():
        warnings.append(f"{settings.git_repo_dir} is not a git work tree - session commits will fail")

    if errors:
        print("❌ Errors:")
        for e in errors:
            print(f"   - {e}")

    if warnings:
        print("⚠️  Warnings:")
        for w in warnings:
            print(f"   - {w}")

    if not errors and not warnings:
        print("✅ Configuration looks good!")
    elif not errors:
        print("\n✅ Configuration is valid (with warnings)")
    else:
        print("\n❌ Configuration has errors - fix them before starting")

    return not errors


def init_tutor() -> None:
    """Initialize the tutor with default configuration."""
    env_file = Path(".env")
    data_dir = Path(get_settings().content_root)

    data_dir.mkdir(parents=True, exist_ok=True)

    if not env_file.exists():
        env_content = """# Bang-Tutor Configuration

# === REQUIRED ===

# LLM API Keys (set the one for DEFAULT_PROVIDER)
ANTHROPIC_API_KEY=
# OPENAI_API_KEY=
# OPENROUTER_API_KEY=

# === OPTIONAL ===

# Default LLM provider and model
DEFAULT_PROVIDER=anthropic
DEFAULT_MODEL=claude-sonnet-4-20250514

# Tutor
NATIVE_LANGUAGE=en
# TOOL_CALL_TIMEOUT_SECONDS=600

# Content and version control
CONTENT_ROOT=data
GIT_REPO_DIR=.
GIT_ENABLED=true
GIT_PUSH_ENABLED=true

# Server
HOST=0.0.0.0
PORT=3001
DEBUG=false

# Database
DATABASE_URL=sqlite+aiosqlite:///./data/bang.db
"""
        env_file.write_text(env_content)
        print(f"✅ Created {env_file}")
    else:
        print(f"ℹ️  {env_file} already exists")

    print(f"✅ Created {data_dir}")
    print("\n=== Next Steps ===")
    print("1. Edit .env and add the API key for your provider")
    print("2. Make sure the content root lives inside a git work tree (or set GIT_ENABLED=false)")
    print("3. Run: bang-tutor serve")
    print("4. Connect your client to ws://localhost:3001/ws")


if __name__ == "__main__":
    main()
