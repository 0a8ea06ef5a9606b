import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('drivers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Delivery',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('offered', 'Offered'), ('assigned', 'Assigned'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('offer_expires_at', models.DateTimeField(blank=True, null=True)),
                ('pickup_address', models.TextField(blank=True, default='')),
                ('dropoff_address', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('assigned_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assigned_deliveries', to='drivers.driver')),
                ('offered_driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='offered_deliveries', to='drivers.driver')),
            ],
            options={
                'db_table': 'deliveries',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(
                        condition=(
                            models.Q(('status', 'offered'), ('offered_driver__isnull', False), ('offer_expires_at__isnull', False))
                            | (~models.Q(('status', 'offered')) & models.Q(('offered_driver__isnull', True), ('offer_expires_at__isnull', True)))
                        ),
                        name='delivery_offer_fields_match_status',
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(('status__in', ['assigned', 'completed']), ('driver__isnull', False))
                            | (~models.Q(('status__in', ['assigned', 'completed'])) & models.Q(('driver__isnull', True)))
                        ),
                        name='delivery_driver_matches_status',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='DeliveryOffer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('declined', 'Declined'), ('expired', 'Expired')], default='pending', max_length=20)),
                ('offered_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('delivery', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='deliveries.delivery')),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='drivers.driver')),
            ],
            options={
                'db_table': 'delivery_offers',
                'ordering': ['offered_at', 'id'],
                'indexes': [models.Index(fields=['status', 'expires_at'], name='offers_status_expiry_idx')],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('status', 'pending')),
                        fields=('delivery',),
                        name='unique_pending_offer_per_delivery',
                    ),
                ],
            },
        ),
    ]
