"""Client capability validation application built on `validatorkit`."""
