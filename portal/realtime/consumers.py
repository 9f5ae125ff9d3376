import json
from channels.generic.websocket import AsyncWebsocketConsumer

from portal.services.pricing_cache import UPDATES_GROUP


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes catalog change notifications to open pricing pages."""
    GROUP = UPDATES_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected", "group": self.GROUP}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # Clients only ever send keep-alives.
        try:
            message = json.loads(text_data or "{}")
        except ValueError:
            return
        if isinstance(message, dict) and message.get("type") == "ping":
            await self.send(json.dumps({"type": "pong"}))

    async def pricing_updated(self, event):
        # event: {"type": "pricing.updated", "version": str|None, "services": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
