from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderSnapshot",
            fields=[
                (
                    "order_id",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("order_code", models.CharField(max_length=64, unique=True)),
                ("company_id", models.CharField(max_length=64)),
                ("status", models.CharField(max_length=32)),
                ("financial_status", models.CharField(max_length=16)),
                ("version", models.PositiveIntegerField()),
                ("payload", models.JSONField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "rentops_order_snapshots",
                "ordering": ["order_code"],
                "indexes": [
                    models.Index(
                        fields=["company_id", "status"],
                        name="idx_snapshot_company_status",
                    ),
                ],
            },
        ),
    ]
