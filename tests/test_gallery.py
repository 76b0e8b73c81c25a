import subprocess
import sys

from statnotes import gallery


class _Result:
    def __init__(self, returncode, stderr=''):
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = ''


def test_every_lesson_module_imports():
    import importlib
    for module, _ in gallery.LESSONS:
        importlib.import_module(f'statnotes.{module}')


def test_gradient_descent_listed_where_it_lives():
    import importlib
    for module, description in gallery.LESSONS:
        lesson = importlib.import_module(f'statnotes.{module}')
        assert ('Gradient descent' in description) == hasattr(lesson, 'gradient_descent')


def test_run_lesson_reports_new_pngs(output_dir, monkeypatch, capsys):
    def fake_run(cmd, **kwargs):
        assert cmd == [sys.executable, '-m', 'statnotes.pca']
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / 'pca_scree.png').write_bytes(b'')
        return _Result(0)

    monkeypatch.setattr(subprocess, 'run', fake_run)
    assert gallery.run_lesson('pca', 'PCA') is True
    assert 'pca_scree.png' in capsys.readouterr().out


def test_run_lesson_failure_and_timeout(output_dir, monkeypatch):
    monkeypatch.setattr(subprocess, 'run', lambda cmd, **kw: _Result(1, 'boom'))
    assert gallery.run_lesson('pca', 'PCA') is False

    def slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs['timeout'])
    monkeypatch.setattr(subprocess, 'run', slow)
    assert gallery.run_lesson('pca', 'PCA', timeout=1) is False


def test_main_exit_codes(output_dir, monkeypatch):
    monkeypatch.setattr(gallery, 'run_lesson', lambda module, description: module != 'svm')
    assert gallery.main(['pca']) == 0
    assert gallery.main(['pca', 'svm']) == 1
    assert gallery.main(['nope']) == 2
