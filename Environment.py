##########################################################################################
#                                                                                        #
#    Ambient conditions and run settings for a simulation, held in a plain              #
#    dictionary. Setters check values at the configuration boundary, the                 #
#    chemistry itself evaluates whatever it is given                                     #
#                                                                                        #
#                                                                                        #
#    Copyright (C) 2018  David Topping : david.topping@manchester.ac.uk                  #
#                                      : davetopp80@gmail.com                            #
#    Personal website: davetoppingsci.com                                                #
#                                                                                        #
#    All Rights Reserved.                                                                #
#    This file is part of TropBox.                                                       #
#                                                                                        #
#    TropBox is free software: you can redistribute it and/or modify it under            #
#    the terms of the GNU General Public License as published by the Free Software       #
#    Foundation, either version 3 of the License, or (at your option) any later          #
#    version.                                                                            #
#                                                                                        #
#    TropBox is distributed in the hope that it will be useful, but WITHOUT              #
#    ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS       #
#    FOR A PARTICULAR PURPOSE.  See the GNU General Public License for more              #
#    details.                                                                            #
#                                                                                        #
#    You should have received a copy of the GNU General Public License along with        #
#    TropBox.  If not, see <http://www.gnu.org/licenses/>.                               #
#                                                                                        #
##########################################################################################

import copy
import logging

logger = logging.getLogger(__name__)

# Allowed range of each numeric setting (lower, upper)
PARAMETER_RANGES={
    'temp':(250.0, 320.0), # Kelvin
    'pressure':(500.0, 1013.0), # hPa
    'sza':(0.0, 90.0), # degrees
    'nox_level':(0.0, 10.0), # scaling of NO and NO2, each set to 0.5*nox_level ppb
    'speed':(0.1, 1000.0), # simulated seconds per wall clock second
    'dt':(10.0, 600.0), # seconds
    }

EMISSION_RANGE=(0.0, 100.0) # ppb/day

def default_environment():

    # Starting ambient conditions
    env=dict()
    env['temp']=298.0 # Kelvin
    env['pressure']=1000.0 # hPa
    env['sza']=0.0 # degrees, ignored while the diurnal cycle is on
    env['diurnal']=True
    env['emissions']={'CH4':10.0, 'CO':5.0} # ppb/day
    env['nox_level']=1.0
    env['speed']=1.0
    env['dt']=60.0 # seconds
    return env

def check_range(name, value, bounds):
    lower, upper = bounds
    if not lower <= value <= upper:
        raise ValueError("%s=%s outside allowed range [%s, %s]" % (name, value, lower, upper))

def set_parameter(env, name, value):

    """ Update one setting in an environment dictionary

    inputs:
    • env - environment dictionary, modified in place
    • name - one of PARAMETER_RANGES, 'diurnal', or 'CH4_emission' / 'CO_emission'
    • value - new value
    outputs:
    • env - the same dictionary, for chaining

    Raises KeyError for an unknown name and ValueError for an out-of-range value.
    A zenith angle set while the diurnal cycle is on is checked and then ignored, the
    stored angle is left as it was.
    """

    if name=='diurnal':
        env['diurnal']=bool(value)
    elif name in ('CH4_emission','CO_emission'):
        species=name.split('_')[0]
        value=float(value)
        check_range(name, value, EMISSION_RANGE)
        emissions=dict(env['emissions'])
        emissions[species]=value
        env['emissions']=emissions
    elif name in PARAMETER_RANGES:
        value=float(value)
        check_range(name, value, PARAMETER_RANGES[name])
        if name=='sza' and env.get('diurnal'):
            logger.debug("Zenith angle %.1f ignored, diurnal cycle is on", value)
            return env
        env[name]=value
    else:
        raise KeyError("Unknown environment parameter %r" % name)
    return env

def nox_partition(nox_level):
    # NOx is split evenly between NO and NO2 [ppb]
    return {'NO':0.5*nox_level, 'NO2':0.5*nox_level}

def snapshot(env):
    # Independent copy, so callers cannot change the live settings
    return copy.deepcopy(env)
