import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
        ('outlets', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Ingredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('unit', models.CharField(default='piece', help_text='Unit the stock is counted in (e.g. kg, L, piece).', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ingredients', to='tenant.tenant')),
            ],
            options={
                'ordering': ['name'],
                'constraints': [models.UniqueConstraint(fields=('tenant', 'name'), name='unique_ingredient_name_per_tenant')],
            },
        ),
        migrations.CreateModel(
            name='InventoryItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('current_stock', models.DecimalField(decimal_places=3, default=decimal.Decimal('0'), help_text='Quantity of stock on hand.', max_digits=12)),
                ('minimum_stock', models.DecimalField(decimal_places=3, default=decimal.Decimal('10'), help_text='At or below this level the item is considered low.', max_digits=12, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('maximum_stock', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('unit_cost', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), help_text='Cost per unit from the most recent receipt.', max_digits=10)),
                ('last_restocked_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ingredient', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='inventory_items', to='inventory.ingredient')),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='inventory_items', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Inventory Item',
                'verbose_name_plural': 'Inventory Items',
                'ordering': ['outlet', 'ingredient__name'],
                'indexes': [
                    models.Index(fields=['tenant', 'outlet'], name='inv_item_tenant_outlet_idx'),
                    models.Index(fields=['tenant', 'current_stock'], name='inv_item_tenant_stock_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('outlet', 'ingredient'), name='unique_inventory_item_per_outlet'),
                    models.CheckConstraint(condition=models.Q(('current_stock__gte', 0)), name='inventory_item_stock_non_negative'),
                    models.CheckConstraint(condition=models.Q(('maximum_stock__isnull', True), ('maximum_stock__gte', models.F('minimum_stock')), _connector='OR'), name='inventory_item_min_lte_max'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ingredient_name', models.CharField(help_text='Kept so history survives removal of the inventory item', max_length=200)),
                ('movement_type', models.CharField(choices=[('RECEIPT', 'Stock Received'), ('CONSUMPTION', 'Recipe Consumption'), ('TRANSFER_OUT', 'Transfer to Outlet'), ('TRANSFER_IN', 'Transfer from Outlet'), ('ADJUSTMENT', 'Stock Count Adjustment'), ('WASTE', 'Waste')], max_length=20)),
                ('quantity_change', models.DecimalField(decimal_places=3, help_text='Change in quantity (positive for additions, negative for removals)', max_digits=12)),
                ('previous_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('new_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('reference_id', models.CharField(blank=True, help_text='Reference linking related movements (receipt batch, order id)', max_length=100)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('inventory_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='movements', to='inventory.inventoryitem')),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_movements', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_movements', to='tenant.tenant')),
            ],
            options={
                'verbose_name': 'Stock Movement',
                'verbose_name_plural': 'Stock Movements',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['tenant', 'outlet', 'created_at'], name='stock_mov_ten_outlet_time_idx'),
                    models.Index(fields=['tenant', 'movement_type'], name='stock_mov_ten_type_idx'),
                    models.Index(fields=['tenant', 'reference_id'], name='stock_mov_ten_reference_idx'),
                ],
            },
        ),
    ]
