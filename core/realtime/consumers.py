import json

from channels.generic.websocket import AsyncWebsocketConsumer

from core.services.invalidation import UPDATES_GROUP


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Push resource invalidations to signed-in browsers.

    The client drops every cached query whose key starts with one of
    the resource names in an ``invalidate`` message.
    """
    GROUP = UPDATES_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close(code=4401)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def broadcast_invalidate(self, event):
        # event: {"type": "broadcast.invalidate", "resources": [...], "version": int, "ts": "..."}
        await self.send(json.dumps({
            "type": "invalidate",
            "resources": event.get("resources", []),
            "version": event.get("version"),
            "ts": event.get("ts"),
        }))
