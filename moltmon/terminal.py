import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.text import Text

from . import config
from .driver import TickDriver
from .log import log_file_for, setup_logging
from .machine import PetStateMachine
from .models import CauseOfDeath, PetEvent, PetState
from .store import Store

logger = logging.getLogger(__name__)

# --- Art ---
ASCII_ART = {
    "egg": "🥚",
    "hatching": "🐣",
    "sick": "🤢",
    "dead": "💀",
    "poop": "💩",
}

CREATURES = {
    "001_blue_cat": {"name": "Blue Cat", "idle": "🐱", "sounds": {"idle": "nyaa~", "hungry": "mew? mew!", "sick": "...mrrp"}},
    "002_pink_dog": {"name": "Pink Dog", "idle": "🐶", "sounds": {"idle": "woof!", "hungry": "arf arf!", "sick": "...whimper"}},
}
DEFAULT_CREATURE = "001_blue_cat"

STATE_STYLES = {
    PetState.EGG: "magenta",
    PetState.HATCHING: "yellow",
    PetState.IDLE: "blue",
    PetState.HUNGRY: "yellow",
    PetState.SICK: "green",
    PetState.DEAD: "red",
}

CAUSES = {CauseOfDeath.STARVATION: "Starvation", CauseOfDeath.UNTREATED_SICKNESS: "Untreated Sickness"}


@dataclass
class RenderContext:
    console: Console
    creature_id: str = DEFAULT_CREATURE
    notice: Optional[str] = None

    @property
    def creature(self):
        return CREATURES.get(self.creature_id, CREATURES[DEFAULT_CREATURE])

    def switch_creature(self, creature_id):
        if creature_id and creature_id != self.creature_id:
            if creature_id not in CREATURES:
                logger.warning("Unknown creature %r, drawing %s instead", creature_id, DEFAULT_CREATURE)
            self.creature_id = creature_id


def create_progress_bar(label, completed, total, low_color, mid_color, high_color, low_threshold, high_threshold):
    progress = Progress(TextColumn(f"{label}:{' ' * (10 - len(label))}"), BarColumn(bar_width=20), TextColumn("{task.percentage:>3.0f}%"))
    style = mid_color
    if completed <= low_threshold: style = low_color
    elif completed >= high_threshold: style = high_color
    task_id = progress.add_task(label.lower(), total=total, completed=completed)
    progress.update(task_id, style=style)
    return progress


def format_survival(ms):
    seconds = max(0, int(ms // 1000))
    minutes, hours = seconds // 60, seconds // 3600
    if hours > 0: return f"{hours}h {minutes % 60}m"
    if minutes > 0: return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _percent_elapsed(start, length, now):
    if start is None or length <= 0: return 0
    return max(0, min(100, (now - start) * 100 / length))


def pet_art(data, ctx: RenderContext):
    if data.state == PetState.EGG: return ASCII_ART["egg"]
    if data.state == PetState.HATCHING: return ASCII_ART["hatching"]
    if data.state == PetState.DEAD: return ASCII_ART["dead"]
    if data.state == PetState.SICK: return ASCII_ART["sick"]
    return ctx.creature["idle"]


def status_line(data, ctx: RenderContext):
    sounds = ctx.creature["sounds"]
    if data.state == PetState.EGG: return "[magenta]A mysterious egg appeared... waiting for someone to hatch it.[/magenta]"
    if data.state == PetState.HATCHING: return "[yellow]*crack* *crack*[/yellow]"
    if data.state == PetState.HUNGRY: return f"[yellow]~ {sounds['hungry']} ~[/yellow]"
    if data.state == PetState.SICK: return f"[green]~ {sounds['sick']} ~[/green]"
    if data.state == PetState.DEAD: return "[dim red]~ ... ~[/dim red]"
    return f"[magenta]~ {sounds['idle']} ~[/magenta]"


def render_status(data, ctx: RenderContext, timing, now):
    art = pet_art(data, ctx)
    poop_art_str = (" " + ASCII_ART["poop"]) * data.poop_count
    title = f"Moltmon #{data.pet_id}"
    if data.creature_id: title += f" - {CREATURES.get(data.creature_id, ctx.creature)['name']}"
    alerts = []
    if data.state == PetState.HUNGRY: alerts.append("[bold yellow]Hungry![/]")
    if data.state == PetState.SICK: alerts.append("[bold red]Sick![/]")
    if data.poop_count > 0: alerts.append("[bold yellow]Dirty![/]")
    subtitle = " ".join(alerts) if alerts else f"[green]{data.state.value.title()}[/]"

    rows = [Align.center(f"{art}{poop_art_str}"), Align.center(status_line(data, ctx))]
    if ctx.notice: rows.append(Align.center(ctx.notice))
    if data.state == PetState.IDLE:
        rows.append(create_progress_bar("Hunger", _percent_elapsed(data.hunger_timer_start, timing.hunger_interval_ms, now), 100, "green", "yellow", "red", 40, 80))
    elif data.state == PetState.HUNGRY:
        rows.append(create_progress_bar("Starving", _percent_elapsed(data.hungry_start_time, timing.starvation_death_ms, now), 100, "yellow", "orange1", "red", 30, 70))
    elif data.state == PetState.SICK:
        rows.append(create_progress_bar("Sickness", _percent_elapsed(data.sickness_start_time, timing.death_after_sick_ms, now), 100, "yellow", "orange1", "red", 30, 70))
    if data.poop_sickness_deadline is not None and data.state in (PetState.IDLE, PetState.HUNGRY):
        window = timing.sickness_threshold(data.poop_count)
        rows.append(create_progress_bar("Mess", _percent_elapsed(data.poop_sickness_deadline - window, window, now), 100, "yellow", "orange1", "red", 30, 70))
    border = "blink red" if alerts else STATE_STYLES[data.state]
    return Panel(Group(*rows), title=title, subtitle=subtitle, border_style=border, subtitle_align="right")


def rebirth_message(pet_id):
    return f"[bold cyan]✨ Pet #{pet_id} has been born! ✨[/bold cyan]"


def render_death_summary(summary):
    stats = summary.stats
    cause = CAUSES.get(stats.cause_of_death, "Unknown")
    lines = Text.from_markup(
        f"[dim]Your Moltmon has died[/dim]\n\n"
        f"Pet #{summary.pet_id}\n"
        f"Personality: {stats.personality or 'Unknown'}\n"
        f"Cause: {cause}\n"
        f"Survived: {format_survival(summary.survival_time_ms)}\n\n"
        f"Times fed:     {stats.times_fed}\n"
        f"Times sick:    {stats.times_sick}\n"
        f"Times pooped:  {stats.times_pooped}\n"
        f"Times cleaned: {stats.times_cleaned}\n\n"
        f"[cyan]A new egg is appearing...[/cyan]"
    )
    return Panel(lines, title=f"R.I.P. {ASCII_ART['dead']}", border_style="red")


def announce_rebirths(machine, ctx: RenderContext):
    def announce(event):
        if event == PetEvent.REBORN: ctx.notice = rebirth_message(machine.get_pet_id())
    machine.on_event(announce)


async def _watch(machine, ctx, is_restored):
    console = ctx.console
    if is_restored: console.print(f"[cyan]Welcome back! Pet #{machine.get_pet_id()} restored.[/cyan]")
    else: console.print(f"[cyan]A new Moltmon egg appears! (Pet #{machine.get_pet_id()})[/cyan]")
    await asyncio.sleep(1.5)

    def draw(driver):
        data = driver.machine.get_state_data()
        if data.state != PetState.EGG: ctx.notice = None
        ctx.switch_creature(data.creature_id)
        console.clear()
        console.print(render_status(data, ctx, driver.machine.timing, config.now_ms()))

    def mourn(summary):
        console.clear()
        console.print(Panel(Align.center(f"{ASCII_ART['dead']}\n[dim red]~ ... ~[/dim red]"), border_style="red"))
        console.print(render_death_summary(summary))

    announce_rebirths(machine, ctx)
    await TickDriver(machine).run(on_frame=draw, on_death=mourn)


def run(dev_mode=False, store=None, log_level=None):
    """Run the terminal front end until interrupted. Returns an exit status."""
    if dev_mode: config.set_dev_mode(True)
    store = store or Store(owner=True)
    setup_logging(log_level, log_file=log_file_for(store.directory))
    console = Console()
    if config.is_dev_mode(): console.print("[yellow]Dev mode enabled - using fast timers[/yellow]")

    try:
        state, is_restored = store.restore_or_create_state()
        machine = PetStateMachine(state, store=store)
        ctx = RenderContext(console=console, creature_id=state.creature_id or DEFAULT_CREATURE)
        with console.screen(hide_cursor=True):
            asyncio.run(_watch(machine, ctx, is_restored))
    except KeyboardInterrupt:
        console.print("[bold blue]Thanks for watching! Your Moltmon awaits...[/bold blue]")
        return 0
    except OSError as e:
        logger.exception("Could not persist pet state")
        console.print(f"[bold red]Error saving state:[/bold red] {e}")
        return 1
    return 0
