import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'

# the schema used when no schema file sits beside the configuration
default_schema = os.path.join(os.path.dirname(__file__), 'transport.schema' + config_extension)


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, flavor=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The file is named after the base,
    followed by a period and the flavor if one is given. Missing files give an empty config.
    """
    file = config_filename(config_flavor(name, flavor), directory)
    return load_config_file_base(file, False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def schema_file(name, directory):
    """ the schema beside the configuration if there is one, otherwise the packaged transport schema. """
    local = config_filename(config_flavor(name, 'schema'), directory)
    return local if os.path.exists(local) else default_schema


def load_config(name, directory, user_directory='~'):
    """
        Loads all the configuration files that relate to the given name.
        Later files override earlier ones:
        - the default specialization
        - the platform specialization
        - the user override, from the user directory
        - the base configuration
        The result is validated against the schema, which also fills in defaults.
    :param directory: the location of the configuration files
    :return: the validated ConfigObj
    """
    config = ConfigObj(configspec=schema_file(name, directory))
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(load_config_file_base(os.path.join(os.path.expanduser(user_directory), name + config_extension),
                                       must_exist=False))
    config.merge(config_flavor_file(name, directory))

    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        failures = []
        for sections, key, error in flatten_errors(config, result):
            path = '.'.join(sections + ([key] if key is not None else []))
            failures.append('%s (%s)' % (path, error or 'missing'))
        raise ConfigObjError("the config file %s failed validation: %s" % (name, ', '.join(failures)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to descend through
    :return: The configuration object identified by the path, or None
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf
