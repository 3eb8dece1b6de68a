import cv2
import numpy as np
import pytest

from bmpedit import EditSession, TransformConfig, read_bitmap
from bmpedit.cli import main, run_menu
from bmpedit.helpers import export_preview
from bmpedit.transforms import enlarge, grayscale, lighten
from bmpedit.viz import Visualizer


def test_apply_grayscale(tmp_path, bitmap_file, noisy_image, capsys):
    out = tmp_path / "gray.bmp"
    main(["apply", str(bitmap_file), str(out), "-t", "3"])
    np.testing.assert_array_equal(read_bitmap(out), grayscale(noisy_image))
    assert "Grayscale" in capsys.readouterr().out


def test_apply_with_params_and_preview(tmp_path, bitmap_file, noisy_image):
    out = tmp_path / "big.bmp"
    previews = tmp_path / "previews"
    main(["apply", str(bitmap_file), str(out), "-t", "6", "--x_scale", "2", "--y_scale", "3",
          "--preview_dir", str(previews)])
    np.testing.assert_array_equal(read_bitmap(out), enlarge(noisy_image, 2, 3))
    assert (previews / "big_orig.png").exists()
    assert (previews / "big.png").exists()


def test_apply_wrap_flag(tmp_path, bitmap_file, noisy_image):
    out = tmp_path / "light.bmp"
    main(["apply", str(bitmap_file), str(out), "-t", "8", "--factor", "1.5", "--wrap"])
    expected = lighten(noisy_image, 1.5, config=TransformConfig(channel_policy="wrap"))
    np.testing.assert_array_equal(read_bitmap(out), expected)


@pytest.mark.parametrize("extra", [
    ["-t", "2"],                          # missing --factor
    ["-t", "12"],
    ["-t", "6", "--x_scale", "0", "--y_scale", "1"],
])
def test_apply_errors_exit(tmp_path, bitmap_file, extra):
    out = tmp_path / "out.bmp"
    with pytest.raises(SystemExit):
        main(["apply", str(bitmap_file), str(out)] + extra)
    assert not out.exists()


def test_apply_refuses_same_output(bitmap_file):
    original = bitmap_file.read_bytes()
    with pytest.raises(SystemExit):
        main(["apply", str(bitmap_file), str(bitmap_file), "-t", "3"])
    assert bitmap_file.read_bytes() == original


def test_apply_unreadable_input(tmp_path):
    bad = tmp_path / "bad.bmp"
    bad.write_bytes(b"not a bitmap")
    with pytest.raises(SystemExit):
        main(["apply", str(bad), str(tmp_path / "o.bmp"), "-t", "3"])


def test_info(bitmap_file, capsys):
    main(["info", str(bitmap_file)])
    out = capsys.readouterr().out
    assert "width: 5" in out
    assert "height: 7" in out
    assert "bpp: 24" in out
    assert "layout_ok: True" in out


def test_transforms_listing(capsys):
    main(["transforms"])
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 10
    assert "Vignette" in lines[0]
    assert "--x_scale int" in lines[5]


def test_menu_session(tmp_path, bitmap_file, noisy_image, capsys):
    session = EditSession()
    session.open(bitmap_file)
    answers = iter([
        "abc",                        # invalid, asked again
        "9", "0.5", str(tmp_path / "dark"),
        "3", str(tmp_path / "dark_gray.bmp"),
        "q",
    ])
    run_menu(session, input_fn=lambda _prompt: next(answers))

    dark = read_bitmap(tmp_path / "dark.bmp")
    assert dark.shape == noisy_image.shape
    np.testing.assert_array_equal(read_bitmap(tmp_path / "dark_gray.bmp"), grayscale(dark))
    out = capsys.readouterr().out
    assert "Invalid input" in out
    assert "Thank you" in out


def test_menu_stops_on_eof(bitmap_file):
    session = EditSession()
    session.open(bitmap_file)

    def no_input(_prompt):
        raise EOFError

    run_menu(session, input_fn=no_input)


def test_export_preview_is_rgb(tmp_path, noisy_image):
    path = tmp_path / "p" / "preview.png"
    assert export_preview(noisy_image, path)
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    np.testing.assert_array_equal(bgr[..., ::-1], noisy_image)


def test_visualizer_before_after(noisy_image):
    import matplotlib.pyplot as plt
    fig = Visualizer().show_before_after(noisy_image, grayscale(noisy_image), show=False)
    assert len(fig.axes) == 2
    plt.close(fig)
