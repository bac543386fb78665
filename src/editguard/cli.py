"""CLI entry point for editguard."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from editguard.canon.extractor import canon_debug_summary, extract_canon_from_draft
from editguard.canon.locks import apply_canon_locks
from editguard.config import ConfigManager
from editguard.guards.anchors import inject_anchors
from editguard.pipeline import evaluate_completion, plan_edit
from editguard.scope.resolver import build_edit_scope_contract, resolve_scope_gate
from editguard.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console(stderr=True)

LANGUAGES = click.Choice(["vi", "en"])
POLICIES = click.Choice(["default", "lock_all", "unlock_all", "custom"])
TARGETS = click.Choice(["HOOK", "BODY", "CTA", "TONE", "FULL"], case_sensitive=False)


def load_config(config_path: Optional[Path]) -> ConfigManager:
    """
    Load configuration from --config, or the default location when present.

    Raises:
        click.ClickException: If the config is missing (explicit path) or invalid
    """
    try:
        if config_path is not None:
            return ConfigManager.load_from_path(config_path)
        return ConfigManager.load_default(missing_ok=True)
    except (FileNotFoundError, PermissionError) as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(f"Configuration validation failed:\n{e}")


@click.group()
@click.version_option(version="0.1.0", prog_name="editguard")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Path to config.yaml (default: ~/.config/editguard/config.yaml)")
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """editguard: keep LLM edits of a draft inside the scope the user asked for."""
    configure_logging("DEBUG" if verbose else None)

    ctx.obj = load_config(config_path)


@cli.command()
@click.argument("draft", type=click.File("r", encoding="utf-8"))
@click.option("--draft-id", default="draft", show_default=True, help="Id stored in the canon metadata")
@click.option("--policy", type=POLICIES, default=None, help="Lock policy (default: from config)")
@click.pass_obj
def extract(config: ConfigManager, draft, draft_id: str, policy: Optional[str]):
    """
    Extract the canon (hook / body / CTA / tone) of a draft as JSON.

    Examples:
        editguard extract post.md
        editguard extract post.md --policy lock_all
    """
    policy = policy or config.editing.lock_policy
    canon = apply_canon_locks(extract_canon_from_draft(draft.read(), draft_id), policy)
    logger.info("extract_command_completed", draft_id=draft_id, policy=policy)

    console.print(canon_debug_summary(canon), style="dim")
    click.echo(canon.model_dump_json(indent=2))


@cli.command()
@click.argument("instruction")
@click.option("--lang", type=LANGUAGES, default=None, help="Instruction language (default: from config)")
@click.option("--no-canon", is_flag=True, help="Resolve as if there were no existing draft")
@click.pass_obj
def scope(config: ConfigManager, instruction: str, lang: Optional[str], no_canon: bool):
    """
    Show the scope contract and scope-gate decision for an instruction.

    Examples:
        editguard scope "viết lại hook"
        editguard scope "make it better" --lang en
    """
    lang = lang or config.editing.language
    has_canon = not no_canon

    contract = build_edit_scope_contract(instruction, lang=lang, has_active_canon=has_canon)
    gate = resolve_scope_gate(instruction, has_canon, lang)

    payload = {"contract": contract.model_dump(mode="json"), "gate": gate.model_dump(mode="json")}
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@cli.command()
@click.argument("draft", type=click.File("r", encoding="utf-8"))
def anchor(draft):
    """Print a draft with paragraph anchors injected."""
    anchored = inject_anchors(draft.read())
    console.print(f"{anchored.paragraph_count} anchored paragraph(s)", style="dim")
    click.echo(anchored.anchored_text)


@cli.command()
@click.argument("draft", type=click.File("r", encoding="utf-8"))
@click.argument("completion", type=click.File("r", encoding="utf-8"))
@click.option("--instruction", "-i", required=True, help="Edit instruction the completion answers")
@click.option("--lang", type=LANGUAGES, default=None, help="Instruction language (default: from config)")
@click.option("--target", type=TARGETS, default=None, help="Scope picked by the user, overriding detection")
@click.option("--draft-id", default="draft", show_default=True)
@click.pass_obj
def check(config: ConfigManager, draft, completion, instruction: str, lang: Optional[str],
          target: Optional[str], draft_id: str):
    """
    Validate a model completion for an edit of DRAFT and print the verdict.

    Exits with status 1 when the completion is rejected.

    Examples:
        editguard check post.md answer.md -i "viết lại hook"
    """
    lang = lang or config.editing.language
    canon = apply_canon_locks(extract_canon_from_draft(draft.read(), draft_id), config.editing.lock_policy)

    plan = plan_edit(canon, instruction, lang, user_picked_target=target.upper() if target else None)
    if plan is None:
        raise click.UsageError("Instruction must not be empty")

    result = evaluate_completion(plan, completion.read())
    logger.info("check_command_completed", draft_id=draft_id, validated=result.validated,
                reason_code=result.reason_code)

    if result.validated:
        console.print(f"[green]✓[/green] {plan.mode} {plan.scope.target} accepted")
    else:
        console.print(f"[red]✗[/red] rejected: {result.reason_code}")

    click.echo(result.model_dump_json(indent=2))

    if not result.validated:
        sys.exit(1)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
