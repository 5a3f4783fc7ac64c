import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("fleet", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="availabilitywindow",
            name="origin_order",
            field=models.ForeignKey(
                blank=True, null=True,
                on_delete=django.db.models.deletion.CASCADE,
                related_name="availability_windows",
                to="orders.order",
            ),
        ),
        migrations.AddIndex(
            model_name="availabilitywindow",
            index=models.Index(fields=["origin_order"], name="fleet_window_order_idx"),
        ),
    ]
