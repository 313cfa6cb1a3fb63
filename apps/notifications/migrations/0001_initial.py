# Generated manually for the notifications app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('kind', models.CharField(choices=[('reservation_confirmed', 'Reservation Confirmed'), ('discount_increased', 'Discount Increased'), ('drop_completed', 'Drop Completed'), ('capture_failed', 'Capture Failed'), ('reservation_refunded', 'Reservation Refunded'), ('drop_cancelled', 'Drop Cancelled'), ('drop_expired', 'Drop Expired'), ('account_suspended', 'Account Suspended')], max_length=40)),
                ('title', models.CharField(max_length=200)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'notifications',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', 'is_read'], name='notifications_user_read_idx')],
            },
        ),
    ]
