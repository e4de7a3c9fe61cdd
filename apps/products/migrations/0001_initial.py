import uuid

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
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('group_order_enabled', models.BooleanField(default=False, help_text='Set automatically when the product has discount tiers.')),
                ('max_group_size', models.PositiveIntegerField(blank=True, help_text='Largest group the vendor can fulfil. Caps tier membersRequired.', null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('vendor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='products', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DiscountTier',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tier_number', models.PositiveSmallIntegerField()),
                ('members_required', models.PositiveIntegerField()),
                ('discount_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='discount_tiers', to='products.product')),
            ],
            options={
                'db_table': 'product_discount_tiers',
                'ordering': ['tier_number'],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'tier_number'), name='unique_tier_number_per_product'),
                    models.UniqueConstraint(fields=('product', 'members_required'), name='unique_members_required_per_product'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BulkTierOperation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tiers', models.JSONField(default=list)),
                ('product_ids', models.JSONField(default=list)),
                ('successful', models.JSONField(default=list)),
                ('failed', models.JSONField(default=list)),
                ('undone_at', models.DateTimeField(blank=True, null=True)),
                ('undo_result', models.JSONField(blank=True, null=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bulk_tier_operations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bulk_tier_operations',
                'ordering': ['-created_at'],
            },
        ),
    ]
