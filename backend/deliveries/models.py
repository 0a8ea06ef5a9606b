from django.db import models
from django.db.models import Q
from django.utils import timezone

from drivers.models import Driver


class Delivery(models.Model):
    """A delivery job moving through pending -> offered -> assigned."""

    STATUS_PENDING = 'pending'
    STATUS_OFFERED = 'offered'
    STATUS_ASSIGNED = 'assigned'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_OFFERED, 'Offered'),
        (STATUS_ASSIGNED, 'Assigned'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Mirror of the active offer, set only while status is 'offered'
    offered_driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='offered_deliveries'
    )
    offer_expires_at = models.DateTimeField(null=True, blank=True)

    # Current assignment, set only while assigned or completed
    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='assigned_deliveries'
    )

    pickup_address = models.TextField(blank=True, default='')
    dropoff_address = models.TextField(blank=True, default='')

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'deliveries'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status='offered', offered_driver__isnull=False, offer_expires_at__isnull=False)
                    | (~Q(status='offered') & Q(offered_driver__isnull=True, offer_expires_at__isnull=True))
                ),
                name='delivery_offer_fields_match_status',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status__in=['assigned', 'completed'], driver__isnull=False)
                    | (~Q(status__in=['assigned', 'completed']) & Q(driver__isnull=True))
                ),
                name='delivery_driver_matches_status',
            ),
        ]

    def __str__(self):
        return f"Delivery #{self.id} - {self.status}"


class DeliveryOffer(models.Model):
    """One dispatch attempt of a delivery to a driver (the offer ledger)."""

    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_DECLINED = 'declined'
    STATUS_EXPIRED = 'expired'
    # Closed by the system, not by the driver; does not bar a re-offer
    STATUS_WITHDRAWN = 'withdrawn'

    TERMINAL_STATUSES = (STATUS_ACCEPTED, STATUS_DECLINED, STATUS_EXPIRED, STATUS_WITHDRAWN)

    delivery = models.ForeignKey(
        Delivery,
        on_delete=models.PROTECT,
        related_name='offers'
    )

    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='offers'
    )

    status = models.CharField(
        max_length=20,
        choices=[
            (STATUS_PENDING, 'Pending'),
            (STATUS_ACCEPTED, 'Accepted'),
            (STATUS_DECLINED, 'Declined'),
            (STATUS_EXPIRED, 'Expired'),
            (STATUS_WITHDRAWN, 'Withdrawn'),
        ],
        default=STATUS_PENDING,
    )

    offered_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'delivery_offers'
        ordering = ['offered_at', 'id']
        constraints = [
            # Offers for one delivery are strictly sequential
            models.UniqueConstraint(
                fields=['delivery'],
                condition=Q(status='pending'),
                name='unique_pending_offer_per_delivery'
            )
        ]
        indexes = [
            models.Index(fields=['status', 'expires_at'], name='offers_status_expiry_idx'),
        ]

    def __str__(self):
        return f"Offer #{self.id} - Delivery {self.delivery_id} -> Driver {self.driver_id} ({self.status})"
