from decimal import Decimal
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vendor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('contact_name', models.CharField(blank=True, max_length=200)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('notes', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'vendors',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='VendorOrderSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_frequency', models.CharField(choices=[('weekly', 'Weekly'), ('fortnightly', 'Fortnightly'), ('monthly', 'Monthly')], default='weekly', max_length=20)),
                ('order_day', models.CharField(blank=True, max_length=20)),
                ('minimum_order_value', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('free_shipping_threshold', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('shipping_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('lead_time_days', models.PositiveIntegerField(default=7)),
                ('contact_email', models.EmailField(blank=True, max_length=254)),
                ('contact_name', models.CharField(blank=True, max_length=200)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vendor', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='order_settings', to='catalog.vendor')),
            ],
            options={
                'db_table': 'vendor_order_settings',
            },
        ),
        migrations.CreateModel(
            name='Item',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('category', models.CharField(db_index=True, max_length=100)),
                ('subcategory', models.CharField(blank=True, max_length=100)),
                ('display_order', models.IntegerField(default=0)),
                ('sku', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('barcode', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('current_cost_ex_gst', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=10)),
                ('current_markup', models.DecimalField(decimal_places=4, default=Decimal('1.65'), max_digits=6)),
                ('current_sell_ex_gst', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('current_sell_inc_gst', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('has_gst', models.BooleanField(default=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('vendor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='items', to='catalog.vendor')),
            ],
            options={
                'db_table': 'items',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ItemPriceHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('old_cost_ex_gst', models.DecimalField(decimal_places=4, max_digits=10)),
                ('new_cost_ex_gst', models.DecimalField(decimal_places=4, max_digits=10)),
                ('old_markup', models.DecimalField(decimal_places=4, max_digits=6)),
                ('new_markup', models.DecimalField(decimal_places=4, max_digits=6)),
                ('old_sell_ex_gst', models.DecimalField(decimal_places=2, max_digits=10)),
                ('new_sell_ex_gst', models.DecimalField(decimal_places=2, max_digits=10)),
                ('old_sell_inc_gst', models.DecimalField(decimal_places=2, max_digits=10)),
                ('new_sell_inc_gst', models.DecimalField(decimal_places=2, max_digits=10)),
                ('changed_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='price_history', to='catalog.item')),
            ],
            options={
                'db_table': 'item_price_history',
                'ordering': ['-changed_at'],
                'verbose_name_plural': 'item price history',
            },
        ),
    ]
