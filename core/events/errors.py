"""RentOps Event Bus - subscription errors. Dispatch itself never raises."""


class EventBusError(Exception):
    pass


class InvalidEventTypeFormat(EventBusError):
    """Names are dotted, at least three segments: orders.order.quoted.v1."""

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(
            f"'{event_type}' is not a dotted event type such as "
            f"'orders.order.quoted.v1' or 'orders.order.*'."
        )


class DuplicateSubscriberError(EventBusError):
    def __init__(self, event_type: str, handler_name: str):
        self.event_type = event_type
        self.handler_name = handler_name
        super().__init__(
            f"{handler_name} is already subscribed to '{event_type}'."
        )
