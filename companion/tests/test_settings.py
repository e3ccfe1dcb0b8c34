import contextlib
import io
import os
import tempfile
import unittest

from companion.settings import (
    BridgeConfig,
    ConfigError,
    Settings,
    load_config,
    main,
    parse_config,
    validate_config,
)


SAMPLE_INI = """\
[ParameterRemapping]
74 = 10
1 = 128
abc = 5
12 = twelve

[InvertParameters]
values = 10, 11 , x, 128

[Settings]
MaxParameterMessageRate = 150
RemapParameters = true
EnableAdditionalLogging = yes
"""


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        cfg = BridgeConfig()
        self.assertEqual(cfg.settings, Settings(300, False, False))
        self.assertEqual(dict(cfg.remaps), {})
        self.assertEqual(cfg.inverted, frozenset())
        self.assertEqual(parse_config("").settings.max_parameter_message_rate, 300)

    def test_parse_sample(self):
        cfg = parse_config(SAMPLE_INI)
        # Unparsable pairs are skipped
        self.assertEqual(dict(cfg.remaps), {74: 10, 1: 128})
        self.assertEqual(cfg.inverted, frozenset({10, 11, 128}))
        self.assertEqual(cfg.settings.max_parameter_message_rate, 150)
        self.assertTrue(cfg.settings.remap_parameters)
        self.assertTrue(cfg.verbose)

    def test_settings_keys_are_case_insensitive(self):
        cfg = parse_config("[Settings]\nmaxparametermessagerate = 0\nREMAPPARAMETERS = on\n")
        self.assertEqual(cfg.settings.max_parameter_message_rate, 0)
        self.assertTrue(cfg.settings.remap_parameters)

    def test_bad_setting_value_raises(self):
        with self.assertRaises(ConfigError):
            parse_config("[Settings]\nMaxParameterMessageRate = lots\n")
        with self.assertRaises(ConfigError):
            parse_config("[Settings]\nRemapParameters = maybe\n")

    def test_broken_ini_raises(self):
        with self.assertRaises(ConfigError):
            parse_config("this is not ini")

    def test_remap_helper(self):
        cfg = parse_config(SAMPLE_INI)
        self.assertEqual(cfg.remap(74), 10)
        self.assertEqual(cfg.remap(5), 5)
        off = cfg.with_overrides(remap=False)
        self.assertEqual(off.remap(74), 74)
        self.assertTrue(cfg.is_inverted(10))
        self.assertFalse(cfg.is_inverted(74))

    def test_overrides_leave_original_untouched(self):
        cfg = BridgeConfig()
        new = cfg.with_overrides(max_rate=0, verbose=True)
        self.assertEqual(new.settings.max_parameter_message_rate, 0)
        self.assertTrue(new.verbose)
        self.assertEqual(cfg.settings.max_parameter_message_rate, 300)
        self.assertFalse(cfg.verbose)
        self.assertEqual(cfg.with_overrides(), cfg)

    def test_missing_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as d:
            cfg = load_config(os.path.join(d, "absent.ini"))
        self.assertEqual(cfg, BridgeConfig())

    def test_validate(self):
        self.assertEqual(validate_config(parse_config(SAMPLE_INI)), [])
        bad = BridgeConfig(
            settings=Settings(max_parameter_message_rate=-1),
            remaps={200: 1, 3: 129},
            inverted=frozenset({-2}),
        )
        errors = validate_config(bad)
        self.assertEqual(len(errors), 4)
        self.assertTrue(any(e.startswith("/Settings/MaxParameterMessageRate") for e in errors))
        self.assertTrue(any(e.startswith("/ParameterRemapping/200") for e in errors))
        self.assertTrue(any(e.startswith("/InvertParameters/values") for e in errors))

    def test_validate_accepts_pitch_wheel_source(self):
        cfg = BridgeConfig(settings=Settings(remap_parameters=True), remaps={128: 1})
        self.assertEqual(validate_config(cfg), [])
        self.assertEqual(cfg.remap(128), 1)
        errors = validate_config(BridgeConfig(remaps={129: 1}))
        self.assertEqual(len(errors), 1)
        self.assertIn("128 (pitch wheel)", errors[0])


class TestSettingsCLI(unittest.TestCase):
    def _write(self, text):
        f = tempfile.NamedTemporaryFile(mode="w", suffix=".ini", delete=False, encoding="utf-8")
        f.write(text)
        f.close()
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_valid_file(self):
        path = self._write(SAMPLE_INI)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = main([path])
        self.assertEqual(rc, 0)
        self.assertIn("74 -> 10", buf.getvalue())
        self.assertIn("max parameter rate: 150", buf.getvalue())

    def test_invalid_file(self):
        path = self._write("[ParameterRemapping]\n500 = 1\n")
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = main([path])
        self.assertEqual(rc, 1)
        self.assertIn("/ParameterRemapping/500", buf.getvalue())

    def test_unreadable_values(self):
        path = self._write("[Settings]\nRemapParameters = perhaps\n")
        err = io.StringIO()
        with contextlib.redirect_stderr(err), contextlib.redirect_stdout(io.StringIO()):
            rc = main([path])
        self.assertEqual(rc, 2)
        self.assertIn("error:", err.getvalue())


if __name__ == "__main__":
    unittest.main()
