"""
Schedule Module - admin menu for reviewing the weekly tournament schedule
Compatible with discord.Client (no commands.Bot required)

Flow: the preview message carries ScheduleMainView. Admins approve it, or
drill into edit/delete menus that replace the view on the same message.
Picking a field sets the shared edit cursor; the next admin message in the
admin channel becomes the new value.
"""
from typing import Optional

import discord
from discord import app_commands
from discord.ui import View, Button

from config import config
from models.schedule import (
    NUMERIC_FIELDS,
    ScheduleError,
    ScheduleNotInitialized,
    EventNotFound,
    UnknownField,
    InvalidValue,
    NoActiveEdit,
)
from utils.error_handling import CollaboratorFailure, log_error
from utils.formatting import format_hour_window

FIELD_LABELS = {
    "limit": "participant limit",
    "lichess_limit": "lichess rating limit",
    "chesscom_limit": "chess.com rating limit",
    "intro": "announcement text",
}

EDIT_PROMPT = "**pick a tournament to edit:**"
DELETE_PROMPT = "**pick a tournament to delete/restore (this week only):**"

MENU_TIMEOUT = 600  # seconds an edit/delete sub-menu stays clickable


# ============================================================================
# MODULE-LEVEL HELPER FUNCTIONS
# ============================================================================

def describe_schedule_error(error: Exception) -> str:
    """User-facing explanation for a failed schedule action"""
    if isinstance(error, ScheduleNotInitialized):
        return "❌ The schedule is not initialized yet. Use /send_schedule to create a new one."
    if isinstance(error, EventNotFound):
        return f"❌ Tournament `{error.event_id}` is not in this week's schedule."
    if isinstance(error, UnknownField):
        return f"❌ `{error.field_name}` cannot be edited."
    if isinstance(error, InvalidValue):
        label = FIELD_LABELS.get(error.field_name, error.field_name)
        if error.field_name in NUMERIC_FIELDS:
            return f"❌ The {label} {error.reason}. Send a number such as 24."
        return f"❌ The {label} {error.reason}."
    if isinstance(error, NoActiveEdit):
        return "❌ Nothing is being edited. Pick a field with ✏️ edit first."
    if isinstance(error, CollaboratorFailure):
        return f"❌ Discord request failed ({error.operation}). Please try again."
    return "❌ Something went wrong."


def is_schedule_admin(user) -> bool:
    """Admins: listed users, listed roles, or anyone who can manage the server"""
    if user.id in config.ADMIN_USER_IDS:
        return True
    if any(role.id in config.ADMIN_ROLE_IDS for role in getattr(user, "roles", [])):
        return True
    permissions = getattr(user, "guild_permissions", None)
    return bool(permissions and permissions.manage_guild)


def with_prompt(summary: str, prompt: str) -> str:
    return f"{summary}\n\n{prompt}"


async def process_schedule_input(message: discord.Message, scheduler) -> bool:
    """
    Treat an admin-channel message as the new value for the field being edited.
    Returns True if message was processed.
    """
    if message.author.bot:
        return False
    if message.channel.id != scheduler.admin_channel_id:
        return False
    if not is_schedule_admin(message.author):
        return False

    event_id, field_name = scheduler.schedule.get_editing_state()
    if not event_id or not field_name:
        return False

    text = message.content.strip()
    if not text:
        return False

    try:
        event = scheduler.schedule.apply_edit_input(text)
    except NoActiveEdit:
        # Another admin finished or cancelled the edit first
        return False
    except ScheduleError as e:
        await message.reply(describe_schedule_error(e), mention_author=False)
        return True

    print(f"✏️ {message.author} set {event.id}.{field_name}")

    try:
        await scheduler.update_schedule_message()
    except CollaboratorFailure as e:
        log_error(e, "Updating schedule message after edit")

    try:
        await message.add_reaction("✅")
    except discord.DiscordException as e:
        log_error(e, "Reacting to schedule edit")

    return True


# ============================================================================
# VIEWS
# ============================================================================

class ScheduleView(View):
    """Base view: admin-only, errors logged and reported ephemerally

    Sub-menus expire after MENU_TIMEOUT and stop listening once replaced;
    only the main menu under the preview is persistent.
    """

    def __init__(self, scheduler, timeout: Optional[float] = MENU_TIMEOUT):
        super().__init__(timeout=timeout)
        self.scheduler = scheduler

    @property
    def schedule(self):
        return self.scheduler.schedule

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if is_schedule_admin(interaction.user):
            return True
        await interaction.response.send_message("❌ Only admins can change the schedule.", ephemeral=True)
        return False

    async def on_error(self, interaction: discord.Interaction, error: Exception, item):
        log_error(error, "Schedule menu", {"item": getattr(item, "custom_id", None)})
        if not interaction.response.is_done():
            await interaction.response.send_message(describe_schedule_error(error), ephemeral=True)

    async def show(self, interaction: discord.Interaction, content: str, view: Optional[View] = None):
        """Replace this menu on the message with content and view"""
        if self.timeout is not None:
            self.stop()
        await interaction.response.edit_message(content=content, view=view)

    async def show_not_initialized(self, interaction: discord.Interaction):
        await self.show(interaction, describe_schedule_error(ScheduleNotInitialized()))


def event_row(index: int) -> int:
    # Rows 0-3 hold events, row 4 is kept for the back button
    return min(index // 5, 3)


class BackButton(Button):
    def __init__(self):
        super().__init__(label="back", emoji="⬅️", style=discord.ButtonStyle.secondary, row=4)

    async def callback(self, interaction: discord.Interaction):
        view = self.view
        view.schedule.clear_editing_state()
        await view.show(
            interaction,
            view.schedule.format_schedule_message(),
            view=ScheduleMainView(view.scheduler),
        )


class ScheduleMainView(ScheduleView):
    """Buttons under the weekly preview (persistent across restarts)"""

    def __init__(self, scheduler):
        super().__init__(scheduler, timeout=None)

    @discord.ui.button(label="all good", emoji="✅", style=discord.ButtonStyle.success,
                       custom_id="schedule:approve", row=0)
    async def approve(self, interaction: discord.Interaction, button: Button):
        if self.schedule.get_current_schedule() is None:
            await self.show_not_initialized(interaction)
            return

        self.schedule.set_approved(True)
        self.schedule.clear_editing_state()
        print(f"✅ Schedule approved by {interaction.user}")

        await self.show(interaction, self.schedule.format_schedule_message())

    @discord.ui.button(label="edit", emoji="✏️", style=discord.ButtonStyle.primary,
                       custom_id="schedule:edit", row=1)
    async def edit(self, interaction: discord.Interaction, button: Button):
        if self.schedule.get_current_schedule() is None:
            await self.show_not_initialized(interaction)
            return

        await self.show(
            interaction,
            with_prompt(self.schedule.format_schedule_message(), EDIT_PROMPT),
            view=ScheduleSelectEventView(self.scheduler),
        )

    @discord.ui.button(label="delete", emoji="🗑", style=discord.ButtonStyle.danger,
                       custom_id="schedule:delete", row=1)
    async def delete(self, interaction: discord.Interaction, button: Button):
        if self.schedule.get_current_schedule() is None:
            await self.show_not_initialized(interaction)
            return

        await self.show(
            interaction,
            with_prompt(self.schedule.format_schedule_message(), DELETE_PROMPT),
            view=ScheduleDeleteView(self.scheduler),
        )


class EditEventButton(Button):
    def __init__(self, event, row: int = 0):
        super().__init__(label=event.day, style=discord.ButtonStyle.secondary, row=row)
        self.event_id = event.id

    async def callback(self, interaction: discord.Interaction):
        view = self.view
        event = view.schedule.get_event(self.event_id)
        if event is None:
            await view.show(interaction, describe_schedule_error(EventNotFound(self.event_id)))
            return

        await view.show(
            interaction,
            with_prompt(view.schedule.format_schedule_message(),
                        f"**editing: {event.day}**\npick a field:"),
            view=ScheduleEditFieldView(view.scheduler, event.id),
        )


class ScheduleSelectEventView(ScheduleView):
    def __init__(self, scheduler):
        super().__init__(scheduler)
        current = scheduler.schedule.get_current_schedule()
        for i, event in enumerate(current.events if current else []):
            self.add_item(EditEventButton(event, row=event_row(i)))
        self.add_item(BackButton())


class DeleteEventButton(Button):
    """Deletes or restores one event; the action is fixed when the menu is drawn"""

    def __init__(self, event, row: int = 0):
        if event.deleted:
            super().__init__(label=f"{event.day} (restore)", emoji="🔄", style=discord.ButtonStyle.success, row=row)
        else:
            super().__init__(label=event.day, emoji="🗑", style=discord.ButtonStyle.danger, row=row)
        self.event_id = event.id
        self.restore = event.deleted

    async def callback(self, interaction: discord.Interaction):
        view = self.view
        if self.restore:
            changed = view.schedule.restore_event(self.event_id)
        else:
            changed = view.schedule.delete_event(self.event_id)

        if not changed:
            if view.schedule.get_current_schedule() is None:
                await view.show_not_initialized(interaction)
            else:
                await view.show(interaction, describe_schedule_error(EventNotFound(self.event_id)))
            return

        action = "restored" if self.restore else "deleted"
        print(f"🗑 {self.event_id} {action} by {interaction.user}")

        await view.show(
            interaction,
            with_prompt(view.schedule.format_schedule_message(), DELETE_PROMPT),
            view=ScheduleDeleteView(view.scheduler),
        )


class ScheduleDeleteView(ScheduleView):
    def __init__(self, scheduler):
        super().__init__(scheduler)
        current = scheduler.schedule.get_current_schedule()
        for i, event in enumerate(current.events if current else []):
            self.add_item(DeleteEventButton(event, row=event_row(i)))
        self.add_item(BackButton())


class FieldButton(Button):
    def __init__(self, event_id: str, field_name: str, row: int):
        super().__init__(label=FIELD_LABELS[field_name], style=discord.ButtonStyle.secondary, row=row)
        self.event_id = event_id
        self.field_name = field_name

    async def callback(self, interaction: discord.Interaction):
        view = self.view
        try:
            view.schedule.set_editing_event(self.event_id, self.field_name)
        except ScheduleError as e:
            await view.show(interaction, describe_schedule_error(e))
            return

        event = view.schedule.get_event(self.event_id)
        if event is None:
            await view.show(interaction, describe_schedule_error(EventNotFound(self.event_id)))
            return

        current_value = getattr(event, self.field_name)
        back = ScheduleView(view.scheduler)
        back.add_item(BackButton())

        await view.show(
            interaction,
            (
                f"**editing {event.day}** {format_hour_window(event.start_hour, event.end_hour)}\n\n"
                f"field: {FIELD_LABELS[self.field_name]}\n"
                f"current value: `{current_value}`\n\n"
                f"send the new value in this channel:"
            ),
            view=back,
        )


class ScheduleEditFieldView(ScheduleView):
    def __init__(self, scheduler, event_id: str):
        super().__init__(scheduler)
        self.add_item(FieldButton(event_id, "limit", row=0))
        self.add_item(FieldButton(event_id, "lichess_limit", row=1))
        self.add_item(FieldButton(event_id, "chesscom_limit", row=1))
        self.add_item(FieldButton(event_id, "intro", row=2))
        self.add_item(BackButton())


# ============================================================================
# SLASH COMMANDS
# ============================================================================

def register_schedule_commands(tree: app_commands.CommandTree, scheduler):
    """Add /send_schedule and /schedule_status to the command tree"""

    @tree.command(name="send_schedule", description="Post this week's tournament schedule for review")
    async def send_schedule(interaction: discord.Interaction):
        if not is_schedule_admin(interaction.user):
            await interaction.response.send_message("❌ Only admins can send the schedule.", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        try:
            await scheduler.send_schedule_preview()
        except CollaboratorFailure as e:
            log_error(e, "Manual schedule preview", {"user_id": interaction.user.id})
            await interaction.followup.send(describe_schedule_error(e), ephemeral=True)
            return

        await interaction.followup.send(
            "📅 This week's schedule was posted. Approve it with ✅ all good.",
            ephemeral=True
        )

    @tree.command(name="schedule_status", description="Show when each weekly task runs next")
    async def schedule_status(interaction: discord.Interaction):
        if not is_schedule_admin(interaction.user):
            await interaction.response.send_message("❌ Only admins can view the scheduler.", ephemeral=True)
            return

        lines = []
        for trigger in scheduler.engine.triggers:
            when = trigger.next_run.strftime("%Y-%m-%d %H:%M") if trigger.next_run else "-"
            lines.append(f"• `{trigger.name}` {trigger.state.value}, next: {when}, fired {trigger.fire_count}×")

        approved = "approved" if scheduler.schedule.is_approved() else "not approved"
        embed = discord.Embed(
            title="⏰ Weekly scheduler",
            description="\n".join(lines) or "No tasks registered",
            color=discord.Color.blue(),
        )
        embed.set_footer(text=f"This week's schedule: {approved}")
        await interaction.response.send_message(embed=embed, ephemeral=True)
