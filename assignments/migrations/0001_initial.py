import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('directory', '0001_initial'),
        ('projects', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='AssignmentBatch',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('batch_number', models.PositiveIntegerField()),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('invalidated', 'Invalidated')], default='active', max_length=16)),
                ('selection', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='projects.project')),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [models.UniqueConstraint(fields=('project', 'batch_number'), name='unique_batch_number_per_project')],
            },
        ),
        migrations.CreateModel(
            name='AssignmentCandidate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('level', models.CharField(choices=[('EXPERT', 'Expert'), ('MID', 'Mid'), ('FRESHER', 'Fresher')], max_length=16)),
                ('response_status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('expired', 'Expired'), ('invalidated', 'Invalidated')], default='pending', max_length=16)),
                ('assigned_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('acceptance_deadline', models.DateTimeField()),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('invalidated_at', models.DateTimeField(blank=True, null=True)),
                ('is_first_accepted', models.BooleanField(default=False)),
                ('usual_response_time_ms', models.PositiveIntegerField(default=0)),
                ('status_text_for_client', models.CharField(default='developer is checking', max_length=64)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='candidates', to='assignments.assignmentbatch')),
                ('developer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignment_candidates', to='directory.developerprofile')),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='candidates', to='projects.project')),
            ],
            options={
                'ordering': ['assigned_at'],
                'indexes': [models.Index(fields=['response_status', 'acceptance_deadline'], name='candidate_status_deadline_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('batch', 'developer'), name='unique_developer_per_batch'),
                    models.UniqueConstraint(condition=models.Q(('is_first_accepted', True)), fields=('batch',), name='single_first_accepted_per_batch'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RotationCursor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.CharField(choices=[('EXPERT', 'Expert'), ('MID', 'Mid'), ('FRESHER', 'Fresher')], max_length=16)),
                ('last_developer_id', models.UUIDField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('skill', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rotation_cursors', to='directory.skill')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('skill', 'level'), name='unique_cursor_per_skill_level')],
            },
        ),
        migrations.CreateModel(
            name='CronRun',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job', models.CharField(max_length=64)),
                ('status', models.CharField(choices=[('started', 'Started'), ('succeeded', 'Succeeded'), ('failed', 'Failed')], default='started', max_length=16)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('started_at', models.DateTimeField(auto_now_add=True)),
                ('finished_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ['-started_at'],
            },
        ),
    ]
