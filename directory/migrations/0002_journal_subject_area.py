from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("directory", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="journal",
            name="subject_area",
            field=models.JSONField(blank=True, default=list),
        ),
    ]
