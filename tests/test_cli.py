import pytest

from nexen.__main__ import main


def write_program(tmp_path, source, name='prog.nx'):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return str(path)


def test_runs_program_file(tmp_path, capsys):
    main([write_program(tmp_path, 'print("from file")')])
    assert capsys.readouterr().out == 'from file\n'


def test_runs_source_text(capsys):
    main(['-s', 'print(1 + 1)'])
    assert capsys.readouterr().out == '2\n'


def test_debug_flag_prints_execution_time(capsys):
    main(['-d', '-s', 'let a = 1'])
    out = capsys.readouterr().out
    assert out.startswith('Program finished\n-> Execution time: [')


def test_tokenize_flag(capsys):
    main(['-t', '-s', 'x = 1'])
    assert capsys.readouterr().out.splitlines() == [
        'Token<Identifier, "x">', "Token<Operator, '='>", 'Token<Number, 1>',
    ]


def test_wrong_extension_is_rejected(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main([write_program(tmp_path, 'print(1)', name='prog.txt')])
    assert info.value.code == 1
    assert 'Invalid file extension. Expected .nx, got .txt' in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main([str(tmp_path / 'absent.nx')])
    assert info.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_program_error_exits_with_status_1(tmp_path, capsys):
    path = write_program(tmp_path, 'print(1)\nprint(nope)')
    with pytest.raises(SystemExit) as info:
        main([path])
    assert info.value.code == 1
    err = capsys.readouterr().err
    assert f'[Interpreter] when executing {path}' in err
    assert '| On line [2]: "print(nope)"' in err


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(['-v', '-s', 'let a = 1'])
    assert (tmp_path / 'debug.txt').read_text().startswith('[line 1]')
