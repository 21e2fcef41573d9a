from prometheus_client import Counter, Gauge

presence_active_clients = Gauge("presence_active_clients", "Number of clients currently in the roster")
presence_countdown_remaining_seconds = Gauge("presence_countdown_remaining_seconds", "Seconds left before the id sequence resets (0 when idle)")
presence_connections_total = Counter("presence_connections_total", "clients registered")
presence_disconnections_total = Counter("presence_disconnections_total", "clients removed from the roster")
presence_id_resets_total = Counter("presence_id_resets_total", "completed id sequence resets")
presence_countdowns_cancelled_total = Counter("presence_countdowns_cancelled_total", "reset countdowns cancelled by a new connection")


def on_roster_change(count: int):
    presence_active_clients.set(count)


def on_countdown_change(remaining: int | None):
    presence_countdown_remaining_seconds.set(remaining or 0)
