import blockchain.fields
import decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RewardLedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_guid', models.CharField(max_length=64)),
                ('date_ts', models.BigIntegerField(help_text='Midnight (UTC) unix timestamp of the rewarded day')),
                ('reward_type', models.CharField(choices=[('engagement', 'Engagement'), ('liquidity', 'Liquidity'), ('holding', 'Holding')], max_length=20)),
                ('score', blockchain.fields.PreciseDecimalField(default=decimal.Decimal('0'))),
                ('multiplier', blockchain.fields.PreciseDecimalField(default=decimal.Decimal('1'))),
                ('token_amount', blockchain.fields.PreciseDecimalField(default=decimal.Decimal('0'), help_text='Tokens earned; only set by the calculation pass')),
                ('payout_tx', models.CharField(blank=True, default='', help_text='Ledger transaction id; set once when tokens are issued', max_length=128)),
                ('tokenomics_version', models.PositiveSmallIntegerField(default=2)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Reward Ledger Entry',
                'verbose_name_plural': 'Reward Ledger Entries',
                'ordering': ['date_ts', 'id'],
                'indexes': [models.Index(fields=['date_ts', 'reward_type'], name='reward_entry_window')],
                'constraints': [
                    models.UniqueConstraint(fields=('user_guid', 'date_ts', 'reward_type'), name='unique_reward_entry_per_user_day_type'),
                ],
            },
        ),
    ]
