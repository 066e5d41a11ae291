from typing import Callable

from physiocare.logger import get_logger

log = get_logger("events")


class ChangeNotifier:
	"""Single "something changed" signal fired after every committed write."""

	def __init__(self) -> None:
		self._subscribers: list[Callable[[], None]] = []

	def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
		self._subscribers.append(callback)

		def unsubscribe() -> None:
			self.unsubscribe(callback)

		return unsubscribe

	def unsubscribe(self, callback: Callable[[], None]) -> None:
		if callback in self._subscribers:
			self._subscribers.remove(callback)

	def notify(self) -> None:
		for callback in list(self._subscribers):
			try:
				callback()
			except Exception:
				log.exception("Change subscriber %r failed", callback)


changes = ChangeNotifier()
