#!/usr/bin/env python

from zenlib.util import get_args_n_logger, get_kwargs_from_args

from fstabgen.fstab_generator import FstabGenerator


def main():
    arguments = [{'flags': ['-c', '--config'], 'action': 'store', 'help': 'set the config file location'},
                 {'flags': ['--fstab'], 'action': 'store', 'help': 'set the mount table location', 'dest': 'fstab_path'},
                 {'flags': ['--sysroot'], 'action': 'store', 'help': 'set where the real root is mounted in the initrd'},
                 {'flags': ['--cmdline'], 'action': 'store', 'help': 'use these boot parameters instead of /proc/cmdline'},
                 {'flags': ['--initrd'], 'action': 'store_true', 'help': 'generate units for the initrd'},
                 {'flags': ['--no-initrd'], 'action': 'store_false', 'help': 'generate units for the real root', 'dest': 'initrd'},
                 {'flags': ['--container'], 'action': 'store_true', 'help': 'ignore device entries, as in a container'},
                 {'flags': ['--no-container'], 'action': 'store_false', 'help': 'disable container detection', 'dest': 'container'},
                 {'flags': ['--print-plans'], 'action': 'store_true', 'help': 'print the outcome of every entry'},
                 {'flags': ['normal_dir'], 'action': 'store', 'help': 'set the output directory', 'nargs': '?'},
                 {'flags': ['early_dir'], 'action': 'store', 'help': 'early output directory, unused', 'nargs': '?'},
                 {'flags': ['late_dir'], 'action': 'store', 'help': 'late output directory, unused', 'nargs': '?'}]

    args, logger = get_args_n_logger(package=__package__, description='Mount table unit generator', arguments=arguments, drop_default=True)
    kwargs = get_kwargs_from_args(args, logger=logger)
    print_plans = kwargs.pop('print_plans', False)

    # Generators are called with no arguments, or with the normal, early and late directories
    early_dir, late_dir = kwargs.pop('early_dir', None), kwargs.pop('late_dir', None)
    if (early_dir is None) != (late_dir is None):
        logger.error("This program takes three or no arguments.")
        exit(1)

    if normal_dir := kwargs.pop('normal_dir', None):
        kwargs['dest'] = normal_dir

    logger.debug(f"Using the following kwargs: {kwargs}")
    generator = FstabGenerator(**kwargs)

    try:
        status = generator.generate()
    except Exception as e:
        logger.info("Dumping config dict:\n")
        print(generator.config_dict)
        logger.error(e, exc_info=True)
        exit(1)

    if print_plans:
        for entry, outcome in generator.results:
            print(f"{entry}: {outcome}")

    exit(status)


if __name__ == '__main__':
    main()
