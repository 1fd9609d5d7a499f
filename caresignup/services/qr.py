import hmac, hashlib, time
from typing import Optional

from caresignup.core.config import settings


def _window(at: Optional[float] = None) -> int:
    return int((at if at is not None else time.time()) // settings.QR_ROTATION_SECONDS)


def _sign(checkin_seed: str, event_id: int, window: int) -> str:
    msg = f"checkin:{event_id}:{window}".encode()
    return hmac.new(key=checkin_seed.encode(), msg=msg, digestmod=hashlib.sha256).hexdigest()[:32]


def build_checkin_token(checkin_seed: str, event_id: int, at: Optional[float] = None) -> str:
    # token rotativo por janela de N segundos, exibido na entrada do evento
    return _sign(checkin_seed, event_id, _window(at))


def seconds_until_rotation(at: Optional[float] = None) -> int:
    now = at if at is not None else time.time()
    return int(settings.QR_ROTATION_SECONDS - (now % settings.QR_ROTATION_SECONDS))


def validate_checkin_token(checkin_seed: str, event_id: int, token: str, skew_windows: int = 1, at: Optional[float] = None) -> bool:
    if not token:
        return False
    # tolerância de clock skew: ±skew_windows janelas
    current = _window(at)
    for w in range(current - skew_windows, current + skew_windows + 1):
        if hmac.compare_digest(_sign(checkin_seed, event_id, w), token.strip().lower()):
            return True
    return False
