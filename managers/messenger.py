"""
Discord messaging wrapper used by the scheduled tasks.

Message ids are plain ints the caller stores and passes back for edits,
pins and unpins. Every Discord failure surfaces as CollaboratorFailure.
"""

from typing import Optional

import discord

from utils.error_handling import CollaboratorFailure


class DiscordMessenger:
    def __init__(self, client: discord.Client):
        self.client = client

    async def _get_channel(self, channel_id: int):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.DiscordException as e:
                raise CollaboratorFailure("fetch channel", f"{channel_id}: {e}") from e
        return channel

    async def send_message(self, channel_id: int, text: str) -> int:
        channel = await self._get_channel(channel_id)
        try:
            message = await channel.send(text)
        except discord.DiscordException as e:
            raise CollaboratorFailure("send message", str(e)) from e
        return message.id

    async def send_message_with_controls(self, channel_id: int, text: str, view: Optional[discord.ui.View]) -> int:
        channel = await self._get_channel(channel_id)
        try:
            if view is None:
                message = await channel.send(text)
            else:
                message = await channel.send(text, view=view)
        except discord.DiscordException as e:
            raise CollaboratorFailure("send message", str(e)) from e
        return message.id

    async def edit_message(self, channel_id: int, message_id: int, text: str, view: Optional[discord.ui.View] = None):
        channel = await self._get_channel(channel_id)
        try:
            await channel.get_partial_message(message_id).edit(content=text, view=view)
        except discord.DiscordException as e:
            raise CollaboratorFailure("edit message", f"{message_id}: {e}") from e

    async def pin_message(self, channel_id: int, message_id: int):
        channel = await self._get_channel(channel_id)
        try:
            await channel.get_partial_message(message_id).pin()
        except discord.DiscordException as e:
            raise CollaboratorFailure("pin message", f"{message_id}: {e}") from e

    async def unpin_message(self, channel_id: int, message_id: int):
        channel = await self._get_channel(channel_id)
        try:
            await channel.get_partial_message(message_id).unpin()
        except discord.DiscordException as e:
            raise CollaboratorFailure("unpin message", f"{message_id}: {e}") from e
