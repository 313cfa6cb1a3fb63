# Generated manually for the drops app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Drop',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('status', models.CharField(choices=[('pending_approval', 'Pending Approval'), ('approved', 'Approved'), ('active', 'Active'), ('inactive', 'Inactive'), ('completed', 'Completed'), ('expired', 'Expired'), ('cancelled', 'Cancelled')], default='pending_approval', max_length=20)),
                ('current_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('current_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('target_value', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('version', models.PositiveIntegerField(default=0)),
                ('start_time', models.DateTimeField(blank=True, null=True)),
                ('end_time', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('activated_at', models.DateTimeField(blank=True, null=True)),
                ('deactivated_at', models.DateTimeField(blank=True, null=True)),
                ('closing_started_at', models.DateTimeField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_drops', to=settings.AUTH_USER_MODEL)),
                ('pickup_point', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='drops', to='catalog.pickuppoint')),
                ('supplier_list', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='drops', to='catalog.supplierlist')),
            ],
            options={
                'db_table': 'drops',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'end_time'], name='drops_status_end_idx'),
                    models.Index(fields=['pickup_point', 'status'], name='drops_pickup_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SettlementReport',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('running', 'Running'), ('finished', 'Finished')], default='running', max_length=20)),
                ('discount_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('captured_count', models.PositiveIntegerField(default=0)),
                ('failed_count', models.PositiveIntegerField(default=0)),
                ('total_original', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_captured', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('outcomes', models.JSONField(blank=True, default=list)),
                ('started_at', models.DateTimeField()),
                ('finished_at', models.DateTimeField(blank=True, null=True)),
                ('drop', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='settlement_report', to='drops.drop')),
            ],
            options={
                'db_table': 'settlement_reports',
                'ordering': ['-started_at'],
            },
        ),
    ]
