import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from configobj import ConfigObjError, ConfigObj
from hamcrest import assert_that, is_, equal_to, calling, raises, none

from mqttpal.config.config import config_filename, config_flavor, load_config_file_base, load_config, \
    map_os_name, fetch_conf_path, schema_file, default_schema

config_name = 'config_test'
config_dir = os.path.dirname(__file__)


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.user_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.user_dir)

    def load(self, name=config_name):
        return load_config(name, config_dir, user_directory=self.user_dir)

    def test_config_file_not_found(self):
        assert_that(calling(load_config_file_base).with_args('blah'), raises(IOError))

    def test_config_file_optional(self):
        assert_that(load_config_file_base('blah', must_exist=False), is_(equal_to({})))

    def test_config_file_invalid_syntax(self):
        assert_that(calling(load_config_file_base).with_args(os.path.join(config_dir, 'config_test_invalid_syntax.cfg')),
                    raises(ConfigObjError, "Section too nested at line 1. at .*config_test_invalid_syntax.cfg"))

    def test_config_file_invalid_values(self):
        assert_that(calling(self.load).with_args('config_test_invalid'),
                    raises(ConfigObjError, "config_test_invalid failed validation: transport.connect_timeout"))

    def test_invalid_values_lists_all_failures(self):
        try:
            self.load('config_test_invalid')
            self.fail("expected validation to fail")
        except ConfigObjError as e:
            assert_that('transport.tls.enabled' in str(e), is_(True))

    def test_can_retrieve_config_file(self):
        file = config_filename(config_flavor(config_name, "default"), config_dir)
        assert_that(os.path.exists(file), is_(True), "expected config path %s to exist" % file)

    @patch('mqttpal.config.config.os_name', return_value='testos')
    def test_layers(self, os_name):
        config = self.load()
        transport = config['transport']
        assert_that(transport['host'], is_('broker.example.com'))
        assert_that(transport['port'], is_('8883'))
        assert_that(transport['connect_timeout'], is_(7.0))
        tls = transport['tls']
        assert_that(tls['enabled'], is_(True))
        assert_that(tls['ca_file'], is_('/etc/ssl/certs/broker-ca.pem'))
        assert_that(tls['handshake_timeout'], is_(4.0))
        assert_that(tls['check_hostname'], is_(True))

    @patch('mqttpal.config.config.os_name', return_value='nosuchos')
    def test_defaults_without_platform_file(self, os_name):
        config = self.load()
        assert_that(config['transport']['connect_timeout'], is_(2.5))

    @patch('mqttpal.config.config.os_name', return_value='testos')
    def test_user_override(self, os_name):
        with open(os.path.join(self.user_dir, config_name + '.cfg'), 'w') as f:
            f.write("[transport]\nconnect_timeout = 9\nhost = mine.example.com\n")
        transport = self.load()['transport']
        assert_that(transport['connect_timeout'], is_(9.0))
        # the base configuration has the final say
        assert_that(transport['host'], is_('broker.example.com'))

    def test_schema_beside_config(self):
        assert_that(schema_file('config_test_alt', config_dir),
                    is_(os.path.join(config_dir, 'config_test_alt.schema.cfg')))
        assert_that(schema_file(config_name, config_dir), is_(default_schema))
        transport = self.load('config_test_alt')['transport']
        assert_that(transport['port'], is_(1884))
        assert_that(transport['host'], is_('alt.example.com'))
        assert_that(transport['connect_timeout'], is_(1.0))

    def test_defaults_only(self):
        transport = self.load('no_such_config')['transport']
        assert_that(transport['host'], is_('localhost'))
        assert_that(transport['port'], is_('1883'))
        assert_that(transport['connect_timeout'], is_(5.0))
        assert_that(transport['tls']['enabled'], is_(False))
        assert_that(transport['tls']['ca_file'], is_(none()))

    def test_map_os_name(self):
        assert_that(map_os_name('Windows'), is_('windows'))
        assert_that(map_os_name('Darwin'), is_('osx'))
        assert_that(map_os_name('darwin'), is_('osx'))

    def test_fetch_conf_path(self):
        conf = ConfigObj({'transport': {'tls': {'enabled': 'True'}}})
        assert_that(fetch_conf_path(conf, ['transport', 'tls'])['enabled'], is_('True'))

    def test_non_existent_config_path(self):
        sut = ConfigObj()
        assert_that(fetch_conf_path(sut, ['abcd']), is_(none()))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
