import asyncio
import json
import os
import secrets
import time
from collections import defaultdict, deque
from typing import Dict, Optional, Tuple
from fastapi import WebSocket
import logging
import psutil
from app.config import settings
from app.models.events import BaseEvent, ErrorEvent, HeartbeatEvent

logger = logging.getLogger(__name__)

class NotificationManager:
    """
    Default in-process notification fan-out.

    Delivery is best effort and at most once: an event goes to the receivers
    connected at publish time, a failed send drops that receiver, nothing is
    retried, queued or persisted. Receivers that are offline never see it.
    """

    def __init__(self, config=None):
        config = config or settings

        # receiver_id -> websocket
        self.receivers: Dict[str, WebSocket] = {}
        self.receiver_ips: Dict[str, str] = {}

        # Connection limits and rate limiting
        self.MAX_RECEIVERS = config.max_receivers
        self.MAX_CONNECTIONS_PER_IP = config.max_connections_per_ip
        self.RATE_LIMIT_WINDOW = config.rate_limit_window
        self.MAX_REQUESTS_PER_WINDOW = config.max_requests_per_window
        self.HEARTBEAT_INTERVAL = config.heartbeat_interval

        self.connection_attempts: Dict[str, deque] = defaultdict(deque)  # IP -> timestamps
        self.ip_connections: Dict[str, int] = defaultdict(int)  # IP -> connection count

        self.metrics = {
            'total_connections': 0,
            'events_published': 0,
            'messages_sent': 0,
            'errors': 0,
            'disconnections': 0
        }

        self.heartbeat_task: Optional[asyncio.Task] = None

    def start_background_tasks(self):
        """Start the heartbeat loop; needs a running event loop"""
        if self.heartbeat_task:
            self.heartbeat_task.cancel()
        self.heartbeat_task = asyncio.create_task(self.heartbeat_monitor())

    async def stop_background_tasks(self):
        if self.heartbeat_task:
            self.heartbeat_task.cancel()
            try:
                await self.heartbeat_task
            except asyncio.CancelledError:
                pass
            self.heartbeat_task = None

    async def heartbeat_monitor(self):
        """Monitor connection health with heartbeat"""
        while True:
            try:
                await asyncio.sleep(self.HEARTBEAT_INTERVAL)
                await self.send_heartbeats()
                self.cleanup_rate_limits()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in heartbeat monitor: {e}")

    async def send_heartbeats(self):
        """Send heartbeat messages to all receivers, dropping dead ones"""
        heartbeat_message = json.dumps(HeartbeatEvent().to_wire())

        dead = []
        for receiver_id, websocket in list(self.receivers.items()):
            try:
                await websocket.send_text(heartbeat_message)
            except Exception as e:
                logger.warning(f"Heartbeat failed for receiver {receiver_id}: {e}")
                dead.append(receiver_id)

        for receiver_id in dead:
            await self.disconnect(receiver_id)

    def check_rate_limit(self, client_ip: str) -> bool:
        """Check if client IP is within rate limits"""
        current_time = time.time()
        cutoff_time = current_time - self.RATE_LIMIT_WINDOW

        timestamps = self.connection_attempts[client_ip]
        while timestamps and timestamps[0] < cutoff_time:
            timestamps.popleft()

        if len(timestamps) >= self.MAX_REQUESTS_PER_WINDOW:
            return False

        timestamps.append(current_time)
        return True

    def cleanup_rate_limits(self):
        """Drop expired rate limit entries so idle IPs are forgotten"""
        cutoff_time = time.time() - self.RATE_LIMIT_WINDOW

        for ip, timestamps in list(self.connection_attempts.items()):
            while timestamps and timestamps[0] < cutoff_time:
                timestamps.popleft()

            if not timestamps:
                del self.connection_attempts[ip]

    def check_connection_limits(self, client_ip: str = None) -> Tuple[bool, str]:
        """Check receiver and per-IP connection limits"""
        if len(self.receivers) >= self.MAX_RECEIVERS:
            return False, "Maximum number of receivers reached"

        if client_ip and self.ip_connections.get(client_ip, 0) >= self.MAX_CONNECTIONS_PER_IP:
            return False, "Too many connections from your IP address"

        return True, ""

    async def connect(self, websocket: WebSocket, client_ip: str = None) -> Optional[str]:
        """Accept a receiver; returns its id, or None when refused"""
        if client_ip:
            if not self.check_rate_limit(client_ip):
                await websocket.close(code=1008, reason="Rate limit exceeded")
                self.metrics['errors'] += 1
                return None

        can_connect, error_msg = self.check_connection_limits(client_ip=client_ip)
        if not can_connect:
            await websocket.close(code=1008, reason=error_msg)
            self.metrics['errors'] += 1
            return None

        await websocket.accept()

        receiver_id = secrets.token_hex(8)
        while receiver_id in self.receivers:
            receiver_id = secrets.token_hex(8)

        self.receivers[receiver_id] = websocket
        self.metrics['total_connections'] += 1
        if client_ip:
            self.receiver_ips[receiver_id] = client_ip
            self.ip_connections[client_ip] += 1

        logger.info(f"Receiver {receiver_id} connected ({len(self.receivers)}/{self.MAX_RECEIVERS})")
        return receiver_id

    async def disconnect(self, receiver_id: str):
        """Forget a receiver; missed events are not replayed"""
        websocket = self.receivers.pop(receiver_id, None)
        if websocket is None:
            return

        client_ip = self.receiver_ips.pop(receiver_id, None)
        if client_ip:
            remaining = self.ip_connections[client_ip] - 1
            if remaining > 0:
                self.ip_connections[client_ip] = remaining
            else:
                self.ip_connections.pop(client_ip, None)
        self.metrics['disconnections'] += 1
        logger.info(f"Receiver {receiver_id} disconnected")

    async def publish(self, event: BaseEvent) -> int:
        """
        Broadcast an event to every connected receiver

        Returns the number of receivers the event was handed to.
        """
        message_json = json.dumps(event.to_wire())
        self.metrics['events_published'] += 1

        delivered = 0
        dead = []
        for receiver_id, websocket in list(self.receivers.items()):
            try:
                await websocket.send_text(message_json)
                delivered += 1
                self.metrics['messages_sent'] += 1
            except Exception as e:
                logger.warning(f"Dropping receiver {receiver_id} after failed send: {e}")
                self.metrics['errors'] += 1
                dead.append(receiver_id)

        for receiver_id in dead:
            await self.disconnect(receiver_id)

        logger.debug(f"Published {event.type} to {delivered} receivers")
        return delivered

    async def send_error(self, websocket: WebSocket, error_message: str):
        """Send error message to a single websocket"""
        try:
            await websocket.send_text(json.dumps(ErrorEvent(message=error_message).to_wire()))
        except Exception as e:
            logger.error(f"Error sending error message: {e}")

    def get_health_status(self) -> dict:
        """Get current fan-out health status"""
        try:
            process = psutil.Process(os.getpid())
            memory_mb = process.memory_info().rss / 1024 / 1024

            return {
                "status": "healthy" if len(self.receivers) < self.MAX_RECEIVERS else "warning",
                "active_receivers": len(self.receivers),
                "memory_usage_mb": round(memory_mb, 2),
                "cpu_percent": process.cpu_percent(),
                "metrics": self.metrics,
                "limits": {
                    "max_receivers": self.MAX_RECEIVERS,
                    "max_connections_per_ip": self.MAX_CONNECTIONS_PER_IP
                }
            }
        except Exception as e:
            logger.error(f"Error getting health status: {e}")
            return {"status": "error", "message": str(e)}

# Global notification manager instance
notification_manager = NotificationManager()
