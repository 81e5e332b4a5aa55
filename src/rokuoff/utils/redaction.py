from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Redactor:
    enabled: bool = True
    _id_map: dict[str, int] = field(default_factory=dict)
    _id_counter: int = 0

    def redact_address(self, address: str) -> str:
        if not self.enabled:
            return address
        parts = address.split(".")
        if len(parts) == 4 and all(part.isdigit() for part in parts):
            return f"x.x.x.{parts[3]}"
        if ":" in address:
            return "xxxx:" + address.rsplit(":", 1)[-1]
        return address

    def redact_id(self, device_id: str) -> str:
        """Hide the serial in discovered ids; manual ids only leak the address."""
        if not self.enabled:
            return device_id
        prefix, sep, _ = device_id.partition("-")
        if not sep:
            return device_id
        counter = self._id_map.get(device_id)
        if counter is None:
            self._id_counter += 1
            counter = self._id_counter
            self._id_map[device_id] = counter
        return f"{prefix}-xxxx{counter:02d}"
