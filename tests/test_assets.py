from assets.create_icon import main, render_icon


def test_render_icon_size_and_mode():
    img = render_icon(64)
    assert img.size == (64, 64)
    assert img.mode == "RGBA"


def test_main_writes_icon_files(tmp_path):
    main(tmp_path)
    assert (tmp_path / "icon.ico").exists()
    assert (tmp_path / "icon_64.png").exists()
