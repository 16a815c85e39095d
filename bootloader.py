import argparse
import asyncio

import uvicorn

from narration_studio.services.content_store import build_content_store
from narration_studio.services.narration.orchestrator import NarrationSyncOrchestrator
from narration_studio.shared.config import StudioConfig
from narration_studio.shared.logging_utils import set_level

APP_FACTORY = "narration_studio.services.narration.app:create_app"
LOGGERS = (
    "narration-sync",
    "narration-service",
    "manifest-service",
    "github-content-store",
    "local-content-store",
    "elevenlabs-driver",
    "audio-transcoder",
)


async def run_generation(config: StudioConfig, deck_ids: list[str], generate_all: bool) -> int:
    orchestrator = NarrationSyncOrchestrator(config, build_content_store(config))
    if generate_all:
        report = await orchestrator.generate_all()
    else:
        report = None
        for deck_id in deck_ids:
            deck_report = await orchestrator.generate_deck(deck_id)
            report = deck_report if report is None else report.merge(deck_report)

    if report is None:
        return 0
    print(
        f"Done: {report.generated} generated, {report.skipped} unchanged, "
        f"{report.no_narration} no narration, {report.failed} failed"
    )
    return 1 if report.failed else 0


def main():
    parser = argparse.ArgumentParser(description="Bootloader for the narration studio.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Start the narration API service")
    serve.add_argument("--host", default="0.0.0.0", help="Host to bind")
    serve.add_argument("--port", type=int, default=8080, help="Port to bind")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (dev mode)")

    generate = subparsers.add_parser("generate", help="Generate audio for deck narrations")
    generate.add_argument("modules", nargs="*", type=int, help="Module numbers, e.g. 5")
    generate.add_argument("--all", action="store_true", help="Generate for every module")

    args = parser.parse_args()
    config = StudioConfig.from_env()
    set_level(config.log_level, *LOGGERS)

    if args.command == "serve":
        print(f"[BOOTLOADER] Starting narration service on {args.host}:{args.port} ...")
        uvicorn.run(APP_FACTORY, host=args.host, port=args.port, reload=args.reload, factory=True)
        return

    if not args.all and not args.modules:
        generate.print_help()
        return

    if not config.elevenlabs_api_key:
        parser.exit(1, "Error: ELEVENLABS_API_KEY not found in environment or .env file\n")

    print(f"Using voice: {config.elevenlabs_voice_id}")
    deck_ids = [f"module-{number:02d}" for number in args.modules]
    raise SystemExit(asyncio.run(run_generation(config, deck_ids, args.all)))


if __name__ == "__main__":
    main()
