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
            name='SalesReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('filename', models.CharField(max_length=255)),
                ('file_hash', models.CharField(max_length=64, unique=True)),
                ('row_count', models.PositiveIntegerField(default=0)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('total_revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'sales_reports',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SalesAggregate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('category', models.CharField(blank=True, max_length=100)),
                ('item_name', models.CharField(max_length=255)),
                ('revenue', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='aggregates', to='sales.salesreport')),
            ],
            options={
                'db_table': 'sales_aggregates',
                'ordering': ['date', 'item_name'],
                'indexes': [
                    models.Index(fields=['date'], name='idx_sales_agg_date'),
                    models.Index(fields=['category'], name='idx_sales_agg_category'),
                    models.Index(fields=['item_name'], name='idx_sales_agg_item'),
                ],
            },
        ),
    ]
