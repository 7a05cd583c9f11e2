##########################################################################################
#                                                                                        #
#    Example tropospheric photochemistry model. Ten species [CH4 oxidation chain,        #
#    NOx and HOx] evolve under Arrhenius and photolysis kinetics, with constant          #
#    emissions of CH4 and CO and a diurnal cycle in solar zenith angle. The              #
#    mechanism is advanced with a fixed step fourth order Runge-Kutta scheme.            #
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
# In the import statements, all files developed specifically for this project            #
# as marked [•]                                                                          #
##########################################################################################

import logging
import Trop_mechanism # [•] Species, presets and reaction table
import Environment # [•] Ambient conditions and run settings
from ODE_solver import run_simulation # [•] Contains routines to run ODE solver
from Simulation_clock import SimulationClock # [•] Wall clock driven simulation

# Start of the main body of code
if __name__=='__main__':

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    #-------------------------------------------------------------------------------------
    #1)Define starting ambient conditions
    env=Environment.default_environment()
    Environment.set_parameter(env,'temp',298.0) # Kelvin
    Environment.set_parameter(env,'pressure',1000.0) # hPa
    Environment.set_parameter(env,'diurnal',True)
    Environment.set_parameter(env,'CH4_emission',10.0) # ppb/day
    Environment.set_parameter(env,'CO_emission',5.0) # ppb/day
    Environment.set_parameter(env,'dt',60.0) # seconds
    #Define a start time
    hour_of_day=6.0 # 24 hr format
    start_time=hour_of_day*60*60 # seconds after local midnight
    simulation_time=2.0*86400.0 # seconds
    batch_step=600.0 # seconds
    preset='background'

    filename='TROP_'+preset

    #Do you want to save the output from the simulation as a .npy file?
    save_output=True
    #-------------------------------------------------------------------------------------
    #2) Run the batch simulation
    print("Running %s preset for %.1f hours" % (preset, simulation_time/3600.0))
    t_array, y_matrix = run_simulation(filename, save_output, start_time, env, preset, simulation_time, batch_step)

    print("Final concentrations [ppb]")
    for species, species_step in Trop_mechanism.extract_mechanism()['species_dict2array'].items():
        print("%8s %14.6f" % (species, y_matrix[-1,species_step]))

    #-------------------------------------------------------------------------------------
    #3) The same conditions driven through the clock, as a display layer would. Here the
    # 'wall clock' is supplied directly: each tick covers one simulated hour at speed 1.
    clock=SimulationClock(env, preset)
    clock.start(now=0.0)
    for hour in range(1,25):
        clock.tick(now=hour*3600.0)
    snapshot=clock.snapshot()
    print("Clock run: %.2f hours simulated, %d samples stored, sza=%.1f" % (snapshot['hours'], snapshot['samples'], snapshot['sza']))

    with open(filename+'_timeseries.csv', 'w', encoding='utf-8') as handle:
        handle.write(clock.time_series.to_csv())
    print("Time series written to %s_timeseries.csv" % filename)
    #-------------------------------------------------------------------------------------
