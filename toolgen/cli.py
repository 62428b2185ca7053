#!/usr/bin/env python3
"""
Command-line front end.

Modes:
    toolgen                         interactive loop
    toolgen --request "计算器"       one synthesis, then exit
    toolgen --web [--port 8080]     run the HTTP API with uvicorn
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from toolgen.ai.diagnostics import diagnose_providers, overall_status
from toolgen.ai.monitoring import configure_logging
from toolgen.core.config import get_settings
from toolgen.core.env_file import ENV_FILE, create_example_config, save_config
from toolgen.core.errors import SynthesisError
from toolgen.services.synthesis_pipeline import PipelineHolder

logger = logging.getLogger("toolgen.cli")

EXIT_COMMANDS = {"quit", "exit", "退出"}
RELOAD_COMMANDS = {"reload", "重载"}
CONFIG_COMMANDS = {"config", "配置"}
DIAGNOSE_COMMANDS = {"diagnose", "test", "诊断", "测试"}
YES_ANSWERS = {"", "y", "yes", "是"}
NO_ANSWERS = {"n", "no", "否"}

BANNER = """============================================================
HTML tool generator
============================================================
Describe the tool you need, for example:
  - a data conversion tool
  - a table editor
  - a loan calculator
  - a text processing tool
------------------------------------------------------------"""

PROMPT = (
    "\nDescribe the tool ('quit' to exit, 'config' to set up AI keys, "
    "'reload' to re-read configuration, 'diagnose' to test the AI providers):"
)

# Wizard choices: label and the .env keys to ask for (the first one is required)
WIZARD_CHOICES = {
    "1": ("Volcengine Ark / Doubao", ["DOUBAO_API_KEY", "DOUBAO_ENDPOINT_ID"]),
    "2": ("OpenAI", ["OPENAI_API_KEY"]),
    "3": ("Anthropic", ["ANTHROPIC_API_KEY"]),
    "4": ("Google Gemini", ["GEMINI_API_KEY"]),
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="toolgen", description="Generate self-contained HTML tools.")
    parser.add_argument("-w", "--web", action="store_true", help="run the HTTP API")
    parser.add_argument("--host", default="127.0.0.1", help="bind address for --web")
    parser.add_argument("-p", "--port", type=int, default=8080, help="port for --web")
    parser.add_argument("-r", "--request", help="synthesize one request and exit")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# CONFIGURATION WIZARD
# ---------------------------------------------------------------------------

def setup_config(ask: Callable[[str], str], env_file: str = ENV_FILE) -> Optional[Dict[str, str]]:
    """
    Ask for one provider's credentials and write them to .env.

    Returns the saved values, or None when cancelled.
    """
    print("\n" + "=" * 60)
    print("AI configuration wizard")
    print("=" * 60)
    print("\nChoose a provider:")
    for key, (label, _) in WIZARD_CHOICES.items():
        print(f"{key}. {label}")
    print(f"{len(WIZARD_CHOICES) + 1}. Cancel")

    try:
        choice = ask(f"\nChoice (1-{len(WIZARD_CHOICES) + 1}): ").strip()
        if choice not in WIZARD_CHOICES:
            print("Configuration cancelled")
            return None

        label, keys = WIZARD_CHOICES[choice]
        print(f"\n--- {label} ---")
        values: Dict[str, str] = {}
        for key in keys:
            value = ask(f"Enter {key}: ").strip()
            if not value:
                print(f"⚠ {key} must not be empty, configuration cancelled")
                return None
            values[key] = value
    except EOFError:
        print("\nConfiguration cancelled")
        return None

    values["USE_AI"] = "true"
    try:
        path = save_config(values, env_file)
    except OSError as e:
        print(f"✗ Failed to save configuration: {e}")
        return None

    print(f"\n✓ Configuration saved to {path}")
    return values


async def configure(holder: PipelineHolder, env_file: str = ENV_FILE) -> None:
    """Run the wizard, then rebuild the pipeline from the new .env."""
    if await asyncio.to_thread(setup_config, input, env_file) is None:
        return

    pipeline = await reload_pipeline(holder)
    if pipeline.generation_available:
        print("✓ Configuration verified, AI generation enabled")
    else:
        print("⚠ AI generation is still unavailable; check the values (environment variables override .env)")


async def check_and_prompt(holder: PipelineHolder, env_file: str = ENV_FILE) -> None:
    """Offer the wizard when no provider is configured."""
    pipeline = holder.current()
    if not pipeline.use_ai or pipeline.generation_available:
        return

    print("\n⚠ No AI provider configured; only stored tools and templates are available")
    try:
        answer = (await asyncio.to_thread(input, "Configure AI now? (Y/n): ")).strip().lower()
    except EOFError:
        return

    if answer in YES_ANSWERS:
        await configure(holder, env_file)
    else:
        print(f"Tip: run 'config' later, or create {env_file} by hand (see env.example)")


# ---------------------------------------------------------------------------
# COMMANDS
# ---------------------------------------------------------------------------

async def reload_pipeline(holder: PipelineHolder):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    return await holder.reload(settings)


async def run_once(holder: PipelineHolder, request: str) -> bool:
    """Synthesize and save one request; returns False on failure."""
    try:
        path, _ = await holder.current().generate_and_save(request)
    except SynthesisError as e:
        print(f"\n✗ Generation failed: {e}")
        return False

    print("\n✓ Tool generated!")
    print(f"Saved to: {path.resolve()}")
    print("Open it directly in a browser.")
    return True


async def run_diagnostics(holder: PipelineHolder) -> None:
    executor = holder.current().executor
    if executor is None:
        print("No AI provider configured. Run 'config', or add an API key to .env and 'reload'.")
        return

    results = await diagnose_providers(executor.providers)
    for result in results:
        mark = "✓" if result.success else "✗"
        print(f"  {mark} {result.summary}")
        for check in result.checks:
            print(f"      [{'ok' if check.success else 'failed'}] {check.stage.value}: {check.message}")
        if result.suggestion:
            print(f"    suggestion: {result.suggestion}")
    print(f"Status: {overall_status(results)}")


async def interactive(holder: PipelineHolder, env_file: str = ENV_FILE) -> None:
    print(BANNER)
    await check_and_prompt(holder, env_file)

    while True:
        print(PROMPT)
        try:
            user_input = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            break

        command = user_input.lower()
        if command in EXIT_COMMANDS:
            print("\nGoodbye!")
            break
        if command in RELOAD_COMMANDS:
            await reload_pipeline(holder)
            print("Configuration reloaded.")
            continue
        if command in CONFIG_COMMANDS:
            await configure(holder, env_file)
            continue
        if command in DIAGNOSE_COMMANDS:
            await run_diagnostics(holder)
            continue
        if not user_input:
            continue

        if await run_once(holder, user_input):
            try:
                answer = (await asyncio.to_thread(input, "\nGenerate another tool? (Y/n): ")).strip().lower()
            except EOFError:
                break
            if answer in NO_ANSWERS:
                break


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    if not Path(ENV_FILE).exists():
        example = create_example_config()
        if example is not None:
            print(f"No {ENV_FILE} found; wrote a template to {example}")

    holder = PipelineHolder.from_settings(settings)

    try:
        if args.request is not None:
            return 0 if await run_once(holder, args.request) else 1
        await interactive(holder)
        return 0
    finally:
        await holder.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.web:
        import uvicorn

        uvicorn.run("toolgen.main:app", host=args.host, port=args.port)
        return 0

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
