import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Outlet',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('timezone', models.CharField(default='UTC', help_text='IANA timezone name used to evaluate operating hours', max_length=50)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outlets', to='tenant.tenant')),
            ],
            options={
                'ordering': ['name'],
                'indexes': [models.Index(fields=['tenant', 'is_active'], name='outlet_tenant_active_idx')],
                'constraints': [models.UniqueConstraint(fields=('tenant', 'name'), name='unique_outlet_name_per_tenant')],
            },
        ),
        migrations.CreateModel(
            name='OperatingHours',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day_of_week', models.IntegerField(choices=[(0, 'Monday'), (1, 'Tuesday'), (2, 'Wednesday'), (3, 'Thursday'), (4, 'Friday'), (5, 'Saturday'), (6, 'Sunday')], help_text='Day of the week (0=Monday, 6=Sunday)')),
                ('opening_time', models.TimeField(blank=True, null=True)),
                ('closing_time', models.TimeField(blank=True, help_text='A closing time at or before the opening time runs past midnight', null=True)),
                ('is_closed', models.BooleanField(default=False, help_text='Is the outlet closed this day?')),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='operating_hours', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='operating_hours', to='tenant.tenant')),
            ],
            options={
                'verbose_name_plural': 'Operating Hours',
                'ordering': ['outlet', 'day_of_week'],
                'constraints': [models.UniqueConstraint(fields=('outlet', 'day_of_week'), name='unique_operating_hours_per_day')],
            },
        ),
        migrations.CreateModel(
            name='DeliveryZone',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('postal_codes', models.JSONField(blank=True, default=list)),
                ('center_latitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('center_longitude', models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ('radius_km', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('is_active', models.BooleanField(default=True)),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='delivery_zones', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='delivery_zones', to='tenant.tenant')),
            ],
            options={
                'ordering': ['outlet', 'name'],
            },
        ),
        migrations.CreateModel(
            name='MinimumOrderAmount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_type', models.CharField(choices=[('DELIVERY', 'Delivery'), ('PICKUP', 'Pickup')], max_length=20)),
                ('minimum_amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='minimum_order_amounts', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='minimum_order_amounts', to='tenant.tenant')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('outlet', 'order_type'), name='unique_minimum_per_outlet_order_type')],
            },
        ),
    ]
