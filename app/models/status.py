from app.core.exceptions import IllegalStatusError


class StatusMachineMixin:
    """Single transition function for models with a ``status`` enum column.

    Subclasses declare ``TRANSITIONS`` as ``{current: {allowed targets}}``.
    States missing from the table are terminal.
    """

    TRANSITIONS: dict = {}

    def can_transition_to(self, target) -> bool:
        return target in self.TRANSITIONS.get(self.status, ())

    def transition_to(self, target) -> None:
        if not self.can_transition_to(target):
            current = getattr(self.status, "value", self.status)
            raise IllegalStatusError(
                f"{type(self).__name__} {self.id} cannot go from "
                f"{current} to {target.value}"
            )
        self.status = target
