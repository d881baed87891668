from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("events", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="registration",
            name="attendance",
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name="registration",
            name="attendance_marked_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="registration",
            name="attendance_method",
            field=models.CharField(
                blank=True,
                choices=[("manual", "Manual"), ("qr_scan", "QR Scan")],
                max_length=16,
                null=True,
            ),
        ),
    ]
