import matplotlib.pyplot as plt

from statnotes import config


def test_figure_path_creates_directory(output_dir):
    path = config.figure_path('example')
    assert path == output_dir / 'example.png'
    assert output_dir.is_dir()


def test_save_figure_writes_png(output_dir, capsys):
    fig, ax = plt.subplots()
    ax.plot([0, 1], [1, 0])
    path = config.save_figure(fig, 'line')
    assert path.exists()
    assert path.suffix == '.png'
    assert 'Saved:' in capsys.readouterr().out
