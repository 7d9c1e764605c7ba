"""
CLI 命令模块 - budgetbot 的所有命令行命令定义。

本模块使用 Typer 框架定义 budgetbot 的 CLI 命令体系：
- onboard：初始化配置和数据目录
- import：导入交易 JSON 文件
- analyze：运行 Agent，为指定用户生成建议
- recommendations：查看用户当前有效的建议
- status：查看系统状态

技术栈：
- Typer：CLI 框架（基于 Click，支持类型注解自动生成帮助文档）
- Rich：终端美化输出（表格、进度动画等）
"""

import asyncio
import json
from contextlib import nullcontext
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from budgetbot import __logo__, __version__

# 创建 Typer 应用实例（CLI 根命令）
app = typer.Typer(
    name="budgetbot",
    help=f"{__logo__} budgetbot - AI budget recommendations",
    no_args_is_help=True,
)

console = Console()

_PRIORITY_STYLES = {
    "Critical": "bold red",
    "High": "red",
    "Medium": "yellow",
    "Low": "dim",
}


def version_callback(value: bool):
    """版本号回调：当用户传入 --version/-v 参数时，打印版本号并退出。"""
    if value:
        console.print(f"{__logo__} budgetbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """budgetbot CLI 根命令回调。处理全局选项（如 --version）。"""
    pass


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard():
    """
    初始化 budgetbot 配置和数据目录。

    执行流程：
    1. 在 ~/.budgetbot/ 下创建默认配置文件 config.json
    2. 创建数据目录（存放 transactions.json / recommendations.json）
    3. 打印后续操作指引
    """
    from budgetbot.config.loader import get_config_path, save_config
    from budgetbot.config.schema import Config
    from budgetbot.utils.helpers import ensure_dir

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    data_dir = ensure_dir(config.data_path)
    console.print(f"[green]✓[/green] Created data directory at {data_dir}")

    console.print(f"\n{__logo__} budgetbot is ready!")
    console.print("\nNext steps:")
    console.print("  1. Add your API key to [cyan]~/.budgetbot/config.json[/cyan] under provider")
    console.print("  2. Import transactions: [cyan]budgetbot import USER_ID transactions.json[/cyan]")
    console.print("  3. Analyze: [cyan]budgetbot analyze USER_ID[/cyan]")


def _make_provider(config):
    """
    根据配置创建 LiteLLM 提供者实例。

    未配置 API Key 时，只有自定义 api_base 或本地模型（ollama/）可以继续，
    否则打印错误并退出。
    """
    from budgetbot.providers.litellm_provider import LiteLLMProvider

    p = config.provider
    defaults = config.agents.defaults
    if not p.api_key and not p.api_base and not defaults.model.startswith("ollama/"):
        console.print("[red]Error: No API key configured.[/red]")
        console.print("Set one in ~/.budgetbot/config.json under provider.apiKey")
        raise typer.Exit(1)
    return LiteLLMProvider(
        api_key=p.api_key or None,
        api_base=p.api_base,
        default_model=defaults.model,
        extra_headers=p.extra_headers,
        timeout=defaults.request_timeout,
    )


def _open_stores(config):
    from budgetbot.store.json_store import JsonRecommendationStore, JsonTransactionStore

    data_dir = config.data_path
    return (
        JsonTransactionStore(data_dir / "transactions.json"),
        JsonRecommendationStore(data_dir / "recommendations.json"),
    )


def _toggle_logs(logs: bool) -> None:
    from loguru import logger

    if logs:
        logger.enable("budgetbot")
    else:
        logger.disable("budgetbot")


# ============================================================================
# Transactions
# ============================================================================


@app.command("import")
def import_transactions(
    user_id: str = typer.Argument(..., help="User the transactions belong to"),
    file: Path = typer.Argument(..., help="JSON file with a transactions list"),
):
    """
    导入交易 JSON 文件。

    文件可以是 {"transactions": [...]} 或裸列表，键名使用 camelCase；
    缺少 userId 的行归属于 USER_ID，已存在的交易 id 会被跳过。
    """
    from budgetbot.config.loader import load_config
    from budgetbot.store.json_store import transaction_from_dict

    if not file.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)

    try:
        data = json.loads(file.read_text())
        rows = data.get("transactions", []) if isinstance(data, dict) else data
        transactions = [transaction_from_dict({"userId": user_id, **row}) for row in rows]
    except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
        console.print(f"[red]Invalid transactions file: {e}[/red]")
        raise typer.Exit(1)

    config = load_config()
    store, _ = _open_stores(config)
    added = store.add(transactions)
    console.print(f"[green]✓[/green] Imported {added} of {len(transactions)} transactions for {user_id}")


# ============================================================================
# Recommendations
# ============================================================================


@app.command()
def analyze(
    user_id: str = typer.Argument(..., help="User to analyze"),
    force: bool = typer.Option(False, "--force", "-f", help="Regenerate even without new transactions"),
    max_iterations: int = typer.Option(None, "--max-iterations", "-n", min=1, help="Override agent iteration limit"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show budgetbot runtime logs"),
):
    """
    运行建议 Agent，为用户生成并保存建议。

    参数:
        user_id: 用户 ID
        force: 跳过"没有新数据"检查
        max_iterations: 覆盖配置中的迭代上限
        logs: 是否显示运行时日志
    """
    from budgetbot.config.loader import load_config
    from budgetbot.recommendations.service import build_service

    config = load_config()
    if max_iterations:
        config.agents.defaults.max_iterations = max_iterations

    provider = _make_provider(config)
    _toggle_logs(logs)

    transactions, recommendations = _open_stores(config)
    service = build_service(config, provider, transactions, recommendations)

    # 日志关闭时显示动画，日志开启时不遮挡输出
    status_ctx = nullcontext() if logs else console.status(
        "[dim]budgetbot is analyzing...[/dim]", spinner="dots"
    )

    async def run():
        with status_ctx:
            return await service.generate(user_id, force=force)

    report = asyncio.run(run())

    if report.status == "generated":
        console.print(f"[green]✓[/green] Generated {report.stored} recommendations for {user_id}\n")
        _print_recommendations(
            [(r.title, r.message, r.category.value, r.priority.value) for r in report.outcome.items]
        )
    elif report.status == "skipped":
        console.print("[dim]No new transactions since the last run. Use --force to regenerate.[/dim]")
    elif report.status == "insufficient_data":
        console.print(
            f"[yellow]Not enough transactions for {user_id} "
            f"(need at least {config.recommendations.min_transactions}).[/yellow]"
        )
    elif report.status == "no_recommendations":
        console.print("[yellow]The model finished without usable recommendations.[/yellow]")
    elif report.status == "aborted":
        console.print(f"[yellow]Agent aborted: {report.outcome.reason.value}[/yellow]")
        raise typer.Exit(2)
    else:
        console.print(f"[red]Generation failed: {report.error}[/red]")
        raise typer.Exit(1)


@app.command("recommendations")
def list_recommendations(
    user_id: str = typer.Argument(..., help="User whose recommendations to show"),
):
    """以表格形式展示用户当前有效的建议（按优先级、生成时间排序）。"""
    from budgetbot.config.loader import load_config
    from budgetbot.utils.helpers import utc_now

    config = load_config()
    _toggle_logs(False)
    _, recommendations = _open_stores(config)

    active = asyncio.run(
        recommendations.active(user_id, utc_now(), config.recommendations.active_limit)
    )
    if not active:
        console.print("No active recommendations.")
        return

    _print_recommendations(
        [(r.title, r.message, r.category.value, r.priority.value) for r in active],
        expires=[r.expires_at.strftime("%Y-%m-%d %H:%M") for r in active],
    )


def _print_recommendations(rows: list[tuple[str, str, str, str]], expires: list[str] | None = None) -> None:
    from budgetbot.utils.helpers import truncate_string

    table = Table(title="Recommendations")
    table.add_column("Priority")
    table.add_column("Type", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Message")
    if expires is not None:
        table.add_column("Expires (UTC)", style="dim")

    for i, (title, message, category, priority) in enumerate(rows):
        style = _PRIORITY_STYLES.get(priority, "")
        cells = [f"[{style}]{priority}[/{style}]" if style else priority, category, title, truncate_string(message, 160)]
        if expires is not None:
            cells.append(expires[i])
        table.add_row(*cells)

    console.print(table)


# ============================================================================
# Status
# ============================================================================


@app.command()
def status():
    """
    显示 budgetbot 系统状态。

    展示内容：
    - 配置文件路径和状态
    - 数据目录路径和状态
    - 当前使用的模型与迭代上限
    - API Key / API Base 配置状态
    """
    from budgetbot.config.loader import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()
    data_dir = config.data_path

    console.print(f"{__logo__} budgetbot Status\n")

    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Data: {data_dir} {'[green]✓[/green]' if data_dir.exists() else '[red]✗[/red]'}")

    if config_path.exists():
        defaults = config.agents.defaults
        console.print(f"Model: {defaults.model}")
        console.print(f"Max iterations: {defaults.max_iterations}")
        console.print(f"API key: {'[green]✓[/green]' if config.provider.api_key else '[dim]not set[/dim]'}")
        if config.provider.api_base:
            console.print(f"API base: [green]✓ {config.provider.api_base}[/green]")


if __name__ == "__main__":
    app()
