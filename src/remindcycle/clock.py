# src/remindcycle/clock.py
"""
Zeitquellen, die in die Engine hineingereicht werden.

Niemand im Kern ruft datetime.now() selbst; "jetzt" kommt immer von einer
dieser Uhren (oder direkt als Parameter in Tests).
"""
import logging
from datetime import datetime, timezone

import ntplib


class SystemClock:
    """Systemzeit in UTC."""

    def __call__(self) -> datetime:
        return datetime.now(timezone.utc)


class NtpClock:
    """Netzwerkzeit per NTP, z.B. wenn die lokale Uhr nicht vertrauenswürdig ist."""

    def __init__(self, server: str = 'pool.ntp.org', timeout: float = 2.0, client=None):
        self.server = server
        self.timeout = timeout
        self._client = client or ntplib.NTPClient()

    def __call__(self) -> datetime:
        try:
            response = self._client.request(self.server, version=3, timeout=self.timeout)
        except (ntplib.NTPException, OSError) as e:
            logging.error(f"[remindcycle] NTP-Abfrage bei {self.server} fehlgeschlagen: {e}")
            raise
        return datetime.fromtimestamp(response.tx_time, tz=timezone.utc)


class FixedClock:
    """Feste Uhr für Tests und Nachberechnungen."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_clock(cfg: dict):
    kind = (cfg.get('clock') or 'system').lower()
    if kind == 'ntp':
        return NtpClock(cfg.get('ntp_server') or 'pool.ntp.org',
                        float(cfg.get('ntp_timeout', 2.0)))
    if kind != 'system':
        logging.warning(f"[remindcycle] Unbekannte Uhr '{kind}', nutze Systemzeit.")
    return SystemClock()
