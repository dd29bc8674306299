import decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenant', '0001_initial'),
        ('outlets', '0001_initial'),
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MenuItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(decimal.Decimal('0'))])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('outlets', models.ManyToManyField(blank=True, help_text='Outlets offering this item. Leave empty for all outlets.', related_name='menu_items', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_items', to='tenant.tenant')),
            ],
            options={
                'ordering': ['name'],
                'indexes': [models.Index(fields=['tenant', 'is_active'], name='menu_item_tenant_active_idx')],
                'constraints': [models.UniqueConstraint(fields=('tenant', 'name'), name='unique_menu_item_name_per_tenant')],
            },
        ),
        migrations.CreateModel(
            name='RecipeLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_per_unit', models.DecimalField(decimal_places=3, max_digits=12)),
                ('ingredient', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='recipe_lines', to='inventory.ingredient')),
                ('menu_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recipe_lines', to='menu.menuitem')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recipe_lines', to='tenant.tenant')),
            ],
            options={
                'ordering': ['menu_item', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('menu_item', 'ingredient'), name='unique_recipe_line_per_ingredient'),
                    models.CheckConstraint(condition=models.Q(('quantity_per_unit__gt', 0)), name='recipe_line_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MenuItemAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_available', models.BooleanField(default=True)),
                ('inventory_available', models.BooleanField(default=True)),
                ('within_hours', models.BooleanField(default=True)),
                ('blocking_ingredients', models.JSONField(blank=True, default=list, help_text='Ingredients at or below minimum stock during the last recompute')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('menu_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availability', to='menu.menuitem')),
                ('outlet', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_item_availability', to='outlets.outlet')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='menu_item_availability', to='tenant.tenant')),
            ],
            options={
                'verbose_name_plural': 'Menu item availability',
                'indexes': [models.Index(fields=['tenant', 'outlet', 'is_available'], name='menu_avail_outlet_idx')],
                'constraints': [models.UniqueConstraint(fields=('menu_item', 'outlet'), name='unique_availability_per_outlet')],
            },
        ),
    ]
