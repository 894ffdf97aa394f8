from hooktoolkit.hooks.router import main

if __name__ == "__main__":
    main()
