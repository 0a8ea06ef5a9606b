from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL

class Driver(models.Model):
    """Driver availability and rating as seen by the dispatcher"""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')

    vehicle_number = models.CharField(max_length=20, blank=True, default='')

    # Availability is owned by the driver app; is_on_delivery is owned by dispatch
    is_available = models.BooleanField(default=False)
    is_on_delivery = models.BooleanField(default=False)

    # Ranking key, nulls sort last
    rating = models.FloatField(null=True, blank=True)

    last_status_update = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'drivers'
        indexes = [
            models.Index(fields=['is_available', 'is_on_delivery'], name='drivers_dispatchable_idx'),
        ]

    def __str__(self):
        return f"Driver #{self.id} - {self.user}"
