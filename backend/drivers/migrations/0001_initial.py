import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vehicle_number', models.CharField(blank=True, default='', max_length=20)),
                ('is_available', models.BooleanField(default=False)),
                ('is_on_delivery', models.BooleanField(default=False)),
                ('rating', models.FloatField(blank=True, null=True)),
                ('last_status_update', models.DateTimeField(default=django.utils.timezone.now)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='driver_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'drivers',
                'indexes': [models.Index(fields=['is_available', 'is_on_delivery'], name='drivers_dispatchable_idx')],
            },
        ),
    ]
