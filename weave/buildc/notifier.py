# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Outbound hot-update notifications and the class-name table behind them.

The table maps a module to the most recently emitted hot-reloadable class in
it. An entry is consumed by `dispatch`: after subscribers have been told, it
is cleared, so the next eligible change has to register the class again.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

from weave.buildc.options import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HotUpdate:
	class_identifier: str
	file_id: str
	# Milliseconds since the epoch.
	timestamp: int

	@property
	def component_ref(self) -> str:
		return f"{self.file_id}@{self.class_identifier}"


Subscriber = Callable[[HotUpdate], None]


class HotUpdateNotifier:
	def __init__(self, clock: Callable[[], float] = time.time) -> None:
		self._clock = clock
		self._class_names: Dict[str, str] = {}
		self._subscribers: List[Subscriber] = []

	def record(self, file_id: str, class_identifier: str) -> None:
		self._class_names[normalize_path(file_id)] = class_identifier

	def get(self, file_id: str) -> str | None:
		return self._class_names.get(normalize_path(file_id))

	def forget(self, file_id: str) -> None:
		self._class_names.pop(normalize_path(file_id), None)

	def subscribe(self, callback: Subscriber) -> Callable[[], None]:
		"""Register `callback`; returns a function that unregisters it."""
		self._subscribers.append(callback)

		def unsubscribe() -> None:
			if callback in self._subscribers:
				self._subscribers.remove(callback)

		return unsubscribe

	def dispatch(self, file_id: str) -> HotUpdate | None:
		file_id = normalize_path(file_id)
		class_identifier = self._class_names.get(file_id)
		if class_identifier is None:
			return None
		update = HotUpdate(class_identifier, file_id, int(self._clock() * 1000))
		try:
			for callback in list(self._subscribers):
				callback(update)
		finally:
			self._class_names.pop(file_id, None)
		logger.info("hot update dispatched for %s", update.component_ref)
		return update


__all__ = ["HotUpdate", "HotUpdateNotifier", "Subscriber"]
