from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.accounts.models import User
from apps.booths.models import Booth


@pytest.mark.django_db
class TestImportCSVCommand:

    def test_imports_users(self, tmp_path, sac_user, user_csv):
        path = tmp_path / 'students.csv'
        path.write_text(user_csv, encoding='utf-8')
        out = StringIO()

        call_command('import_csv', 'users', str(path), '--by', sac_user.email, stdout=out)

        assert '3 user(s) created' in out.getvalue()
        assert User.objects.get(student_number='5000001').balance_cents == 500

    def test_imports_booths(self, tmp_path, sac_user, booth_csv):
        path = tmp_path / 'booths.csv'
        path.write_text(booth_csv, encoding='utf-8')
        out = StringIO()

        call_command('import_csv', 'booths', str(path), '--by', sac_user.email, stdout=out)

        assert '2 booth(s) and 3 product(s) created' in out.getvalue()
        assert Booth.objects.filter(name='Drink Booth').exists()

    def test_dry_run_writes_nothing(self, tmp_path, sac_user, user_csv):
        path = tmp_path / 'students.csv'
        path.write_text(user_csv, encoding='utf-8')
        out = StringIO()

        call_command('import_csv', 'users', str(path), '--by', sac_user.email, '--dry-run', stdout=out)

        assert 'Parsed 3 row(s).' in out.getvalue()
        assert not User.objects.filter(student_number='5000001').exists()

    def test_importer_must_be_sac(self, tmp_path, student, user_csv):
        path = tmp_path / 'students.csv'
        path.write_text(user_csv, encoding='utf-8')

        with pytest.raises(CommandError, match='not a SAC member'):
            call_command('import_csv', 'users', str(path), '--by', student.email)

    def test_missing_file(self, tmp_path, sac_user):
        with pytest.raises(CommandError, match='Cannot read'):
            call_command('import_csv', 'users', str(tmp_path / 'nope.csv'), '--by', sac_user.email)

    def test_missing_columns(self, tmp_path, sac_user):
        path = tmp_path / 'students.csv'
        path.write_text('name,email\nA,a@example.com\n', encoding='utf-8')

        with pytest.raises(CommandError, match='Missing required fields'):
            call_command('import_csv', 'users', str(path), '--by', sac_user.email)
