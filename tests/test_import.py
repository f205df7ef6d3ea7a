import warnings


def test_import():
    try:
        import invchisq  # noqa

        failed = False
    except Exception:
        failed = True

    assert not failed, "Import failed with Exception."


def test_no_syntaxwarnings_on_import():
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always", SyntaxWarning)
        import invchisq  # noqa

    assert not any(issubclass(warn.category, SyntaxWarning) for warn in w), w


def test_public_api():
    import invchisq

    for name in [
        "Operand",
        "CDFResult",
        "inv_chi_square_cdf",
        "inv_chi_square_lcdf",
        "set_config",
        "get_config",
        "set_log_level",
    ]:
        assert hasattr(invchisq, name), name
