# sandboxfs/di.py
from dataclasses import dataclass
from typing import Optional

from sandboxfs.config import Settings
from sandboxfs.logging import configure_logging
from sandboxfs.services.filesystem import SandboxedFilesystem

@dataclass
class Container:
    settings: Settings
    fs_service: SandboxedFilesystem

def build_container(settings: Optional[Settings] = None) -> Container:
    s = settings or Settings()
    configure_logging(s.LOG_LEVEL)

    # The filesystem never creates its own root; startup wiring does
    if s.SANDBOX_CREATE_ROOT:
        s.SANDBOX_ROOT.mkdir(parents=True, exist_ok=True)
    fs = SandboxedFilesystem(s.SANDBOX_ROOT)

    return Container(s, fs)
