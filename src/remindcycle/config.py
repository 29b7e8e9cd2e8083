# src/remindcycle/config.py
import json
import logging
import os


DEFAULTS = {
    'db_path': None,            # None = ~/.remindcycle/remindcycle.db
    'clock': 'system',          # 'system' | 'ntp'
    'ntp_server': 'pool.ntp.org',
    'ntp_timeout': 2.0,
    'page_size': 20,
    'owner': 1,               # lokaler Benutzer der CLI
}


def _config_path():
    base = os.path.join(os.path.expanduser('~'), '.remindcycle')
    os.makedirs(base, exist_ok=True)
    return os.path.join(base, 'remindcycle_config.json')


def load_config(path: str = None):
    path = path or _config_path()
    if not os.path.exists(path):
        # sensible defaults
        return dict(DEFAULTS)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logging.warning(f"[remindcycle] Konfiguration {path} nicht lesbar ({e}), nutze Standardwerte.")
        return dict(DEFAULTS)
    cfg = dict(DEFAULTS)
    if isinstance(stored, dict):
        cfg.update(stored)
    return cfg


def save_config(cfg: dict, path: str = None):
    path = path or _config_path()
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(cfg, f, ensure_ascii=False, indent=2)
