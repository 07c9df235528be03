import blockchain.fields
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
            name='PayoutTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tx', models.CharField(help_text='Caller-assigned transaction id', max_length=128, unique=True)),
                ('user_guid', models.CharField(db_index=True, max_length=64)),
                ('wallet_address', models.CharField(default='offchain', max_length=64)),
                ('contract', models.CharField(default='offchain:reward', max_length=64)),
                ('amount', blockchain.fields.PreciseDecimalField(decimal_places=0, help_text='Amount in base units (18 decimals)')),
                ('timestamp', models.BigIntegerField(help_text='Unix timestamp the payout is booked at')),
                ('data', models.JSONField(blank=True, default=dict)),
                ('completed', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Payout Transaction',
                'verbose_name_plural': 'Payout Transactions',
                'ordering': ['timestamp', 'id'],
            },
        ),
        migrations.CreateModel(
            name='UniqueOnChainAddress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('address', models.CharField(help_text='Registered wallet address (any case)', max_length=42)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='unique_onchain_addresses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'address'), name='unique_onchain_address_per_user'),
                ],
            },
        ),
    ]
