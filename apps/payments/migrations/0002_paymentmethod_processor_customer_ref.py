# Generated manually: saved cards are charged off-session on behalf of their customer

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='paymentmethod',
            name='processor_customer_ref',
            field=models.CharField(blank=True, max_length=255),
        ),
    ]
