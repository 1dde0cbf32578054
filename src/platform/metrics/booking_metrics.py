from prometheus_client import Counter, Gauge, Histogram


class BookingMetrics:
    """
    Reservation lifecycle metrics

    Labels stay low-cardinality: event ids and tiers, never reservation ids.
    """

    def __init__(self):
        # ========== Reservation Metrics ==========
        self.reservation_requests = Counter(
            'reservation_requests_total',
            'Reservation create requests by outcome',
            ['event_id', 'result'],  # result: created / validation_error / insufficient_capacity / ...
        )

        self.reservation_cancellations = Counter(
            'reservation_cancellations_total',
            'Reservation cancel requests by outcome',
            ['event_id', 'result'],
        )

        self.tickets_reserved = Counter(
            'tickets_reserved_total',
            'Tickets reserved per tier',
            ['event_id', 'tier'],
        )

        self.tickets_released = Counter(
            'tickets_released_total',
            'Tickets released per tier',
            ['event_id', 'tier'],
        )

        self.tier_remaining = Gauge(
            'tier_remaining_tickets',
            'Remaining tickets per tier after the last inventory change',
            ['event_id', 'tier'],
        )

        # ========== Payment Metrics ==========
        self.payment_attempts = Counter(
            'payment_attempts_total',
            'Payment attempts by method and outcome',
            ['method', 'result'],  # result: succeeded / failed / invalid
        )

        self.payment_gateway_duration = Histogram(
            'payment_gateway_duration_seconds',
            'Payment gateway call duration',
            ['gateway'],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        )

    def record_reservation(self, *, event_id: int, result: str) -> None:
        self.reservation_requests.labels(event_id=str(event_id), result=result).inc()

    def record_cancellation(self, *, event_id: int, result: str) -> None:
        self.reservation_cancellations.labels(event_id=str(event_id), result=result).inc()

    def record_tickets_reserved(self, *, event_id: int, tier: str, quantity: int, remaining: int) -> None:
        self.tickets_reserved.labels(event_id=str(event_id), tier=tier).inc(quantity)
        self.tier_remaining.labels(event_id=str(event_id), tier=tier).set(remaining)

    def record_tickets_released(self, *, event_id: int, tier: str, quantity: int, remaining: int) -> None:
        self.tickets_released.labels(event_id=str(event_id), tier=tier).inc(quantity)
        self.tier_remaining.labels(event_id=str(event_id), tier=tier).set(remaining)

    def record_payment(self, *, method: str, result: str) -> None:
        self.payment_attempts.labels(method=method, result=result).inc()


# Global metrics instance
metrics = BookingMetrics()
