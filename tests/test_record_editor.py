from sshroster.connection_store import ConnectionRecord, RuntimeConnectionItem
from sshroster.tui.editor import EditorMode, Field, RecordEditor


def _item(**overrides):
    values = {'label': 'box1', 'host': '10.0.0.1', 'port': '2200', 'user': 'root'}
    values.update(overrides)
    return RuntimeConnectionItem.from_record(ConnectionRecord(**values))


def _type(editor, text):
    for ch in text:
        editor.handle_key(ch, ch)


def test_five_tabs_return_to_label():
    editor = RecordEditor()
    seen = []
    for _ in range(5):
        editor.handle_key('tab')
        seen.append(editor.active_field)

    assert seen == [Field.HOST, Field.PORT, Field.USER, Field.PASSWORD, Field.LABEL]


def test_tab_does_not_touch_buffers():
    editor = RecordEditor()
    editor.open_create()
    _type(editor, 'web')

    editor.handle_key('tab')

    assert editor.value(Field.LABEL) == 'web'
    assert editor.value(Field.HOST) == ''


def test_characters_go_to_active_field():
    editor = RecordEditor()
    editor.open_create()
    _type(editor, 'web')
    editor.handle_key('tab')
    _type(editor, 'example.org')

    assert editor.value(Field.LABEL) == 'web'
    assert editor.value(Field.HOST) == 'example.org'


def test_backspace_removes_last_character_and_stops_at_empty():
    editor = RecordEditor()
    _type(editor, 'ab')

    editor.handle_key('backspace')
    assert editor.value(Field.LABEL) == 'a'
    editor.handle_key('backspace')
    editor.handle_key('backspace')
    assert editor.value(Field.LABEL) == ''


def test_non_printable_keys_are_ignored():
    editor = RecordEditor()

    assert editor.handle_key('f1') is False
    assert editor.value(Field.LABEL) == ''


def test_open_create_defaults_port():
    editor = RecordEditor()
    editor.open_create()

    assert editor.mode is EditorMode.CREATE
    assert editor.value(Field.PORT) == '22'
    assert editor.active_field is Field.LABEL
    record = editor.to_record()
    assert record.user is None
    assert record.password is None


def test_open_edit_seeds_every_field_and_remembers_origin():
    editor = RecordEditor()
    item = _item(password='secret', details='rack 4')

    editor.open_edit(item, 3)

    assert editor.mode is EditorMode.EDIT
    assert [editor.value(f) for f in Field] == ['box1', '10.0.0.1', '2200', 'root', 'secret']
    assert editor.original_host == '10.0.0.1'
    assert editor.source_index == 3
    assert editor.to_record().details == 'rack 4'


def test_original_host_survives_host_edits():
    editor = RecordEditor()
    editor.open_edit(_item(), 0)
    editor.handle_key('tab')
    editor.handle_key('backspace')
    _type(editor, '9')

    assert editor.value(Field.HOST) == '10.0.0.9'
    assert editor.original_host == '10.0.0.1'


def test_validate_requires_label_host_and_numeric_port():
    editor = RecordEditor()
    editor.open_create()
    assert editor.validate() == 'Label is required.'

    _type(editor, 'x')
    assert editor.validate() == 'Host is required.'

    editor.handle_key('tab')
    _type(editor, 'h')
    editor.handle_key('tab')
    _type(editor, 'a')
    assert 'Port' in editor.validate()

    editor.handle_key('backspace')
    assert editor.validate() is None


def test_reset_clears_everything():
    editor = RecordEditor()
    editor.open_edit(_item(), 0)

    editor.reset()

    assert all(editor.value(f) == '' for f in Field)
    assert editor.mode is EditorMode.CREATE
    assert editor.original_host is None
